from __future__ import annotations

import os
from pathlib import Path

import pytest

from docsweep.links.extract import LinkFormat, LinkOccurrence
from docsweep.links.normalize import (
    canonical_key,
    is_external,
    link_target_span,
    normalize_link,
    normalize_occurrence,
)


def test_relative_link_resolves_against_base_dir(tmp_path: Path) -> None:
    key = normalize_link("../media/A.png", tmp_path / "articles")
    assert key == os.path.join(str(tmp_path), "media", "a.png").casefold()


def test_backslashes_are_path_separators(tmp_path: Path) -> None:
    assert normalize_link("media\\shot.PNG", tmp_path) == canonical_key(tmp_path / "media" / "shot.png")


@pytest.mark.parametrize("raw", ["#section", "https://example.com/a.md", "mailto:a@b.c", "/root/relative.md", "xref:System.String"])
def test_out_of_scope_links_resolve_to_nothing(raw: str, tmp_path: Path) -> None:
    warnings: list[str] = []
    assert normalize_link(raw, tmp_path, warn=warnings.append) is None
    assert warnings == []


def test_file_named_like_a_scheme_prefix_is_local(tmp_path: Path) -> None:
    assert not is_external("http-guide.md")
    assert normalize_link("http-guide.md", tmp_path) == canonical_key(tmp_path / "http-guide.md")


def test_fragment_and_title_are_dropped(tmp_path: Path) -> None:
    expected = canonical_key(tmp_path / "setup.md")
    assert normalize_link("setup.md#install", tmp_path) == expected
    assert normalize_link('setup.md "Setup guide"', tmp_path) == expected
    assert normalize_link("<setup.md>", tmp_path) == expected


def test_query_is_dropped_for_yaml_only(tmp_path: Path) -> None:
    assert normalize_link("intro.md?tabs=cli", tmp_path, fmt=LinkFormat.YAML_HREF) == canonical_key(tmp_path / "intro.md")
    assert normalize_link("intro.md?tabs=cli", tmp_path) == canonical_key(tmp_path / "intro.md?tabs=cli")


def test_tilde_link_resolves_against_project_root(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    key = normalize_link("~/media/a.png", tmp_path / "repo" / "articles" / "deep", project_root=root)
    assert key == canonical_key(root / "media" / "a.png")


def test_tilde_link_without_project_root_warns(tmp_path: Path) -> None:
    warnings: list[str] = []
    assert normalize_link("~/a.md", tmp_path, warn=warnings.append, source=tmp_path / "t.md") is None
    assert len(warnings) == 1
    assert "t.md" in warnings[0]


def test_illegal_characters_warn_with_source(tmp_path: Path) -> None:
    warnings: list[str] = []
    source = tmp_path / "topic.md"
    assert normalize_link("bad\x00name.md", tmp_path, warn=warnings.append, source=source) is None
    assert warnings == [f"{source}: unable to resolve link 'bad\x00name.md' (illegal characters)"]


def test_overlong_component_warns(tmp_path: Path) -> None:
    warnings: list[str] = []
    assert normalize_link("x" * 300 + ".md", tmp_path, warn=warnings.append) is None
    assert warnings and "path component too long" in warnings[0]


def test_target_span_offsets() -> None:
    assert link_target_span("  a.md  ") == (2, "a.md")
    assert link_target_span("<a b.md>") == (1, "a b.md")
    assert link_target_span('img.png "title"') == (0, "img.png")
    assert link_target_span("t.md?view=1", LinkFormat.YAML_HREF) == (0, "t.md")


def test_case_variants_share_one_key(tmp_path: Path) -> None:
    assert canonical_key(tmp_path / "Media" / "Logo.PNG") == canonical_key(tmp_path / "media" / "logo.png")


def test_occurrence_uses_its_source_directory(tmp_path: Path) -> None:
    occ = LinkOccurrence(raw="b.md", fmt=LinkFormat.INLINE, source=tmp_path / "sub" / "a.md", line_no=1, start=0, end=4)
    assert normalize_occurrence(occ, None) == canonical_key(tmp_path / "sub" / "b.md")
