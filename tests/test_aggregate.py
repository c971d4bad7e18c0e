from __future__ import annotations

from pathlib import Path

import pytest

from docsweep.aggregate import (
    count_references,
    delete_files,
    find_duplicate_topics,
    find_orphaned_images,
    find_orphaned_includes,
    find_orphaned_topics,
)
from docsweep.candidates import CandidateSet
from docsweep.config import SweepConfig
from docsweep.core.errors import ScriptError
from docsweep.core.exit_codes import ERR_CONTEXT
from docsweep.links.extract import LinkFormat
from helpers import names


def test_orphaned_topic_is_the_unlisted_one(make_docset) -> None:
    root = make_docset({"TOC.md": "# [Foo](foo.md)\n", "foo.md": "# Foo\n", "bar.md": "# Bar\n"})
    report = find_orphaned_topics(root)
    assert names(c.path for c in report.findings) == ["bar.md"]
    assert report.status == "fail"
    assert report.scanned_files == 1
    assert report.candidate_count == 2


def test_yaml_toc_lists_topics_by_full_path(make_docset) -> None:
    root = make_docset(
        {
            "toc.yml": "- name: Guide\n  href: guide/intro.md\n",
            "guide/intro.md": "",
            "other/intro.md": "",
        }
    )
    report = find_orphaned_topics(root)
    assert [c.path.relative_to(root).as_posix() for c in report.findings] == ["other/intro.md"]


def test_toc_link_matches_case_insensitively(make_docset) -> None:
    root = make_docset({"TOC.md": "[Setup](Guide/SETUP.md)\n", "guide/setup.md": ""})
    assert find_orphaned_topics(root).findings == []


def test_topics_found_from_nested_input_dir(make_docset) -> None:
    root = make_docset({"TOC.md": "[A](guide/a.md)\n", "guide/a.md": "", "guide/b.md": ""})
    report = find_orphaned_topics(root / "guide")
    assert report.project_root == root
    assert names(c.path for c in report.findings) == ["b.md"]


def test_missing_project_marker_is_fatal(tmp_path: Path) -> None:
    (tmp_path / "a.md").write_text("", encoding="utf-8")
    with pytest.raises(ScriptError) as err:
        find_orphaned_topics(tmp_path)
    assert err.value.code == ERR_CONTEXT
    assert err.value.kind == "missing_project_marker"


def test_delete_keeps_topic_linked_from_another_file(make_docset) -> None:
    root = make_docset(
        {
            "TOC.md": "[B](b.md)\n",
            "a.md": "# A\n",
            "b.md": "See [A](a.md).\n",
            "c.md": "# C links itself [here](c.md)\n",
        }
    )
    report = find_orphaned_topics(root, delete=True)
    assert names(c.path for c in report.findings) == ["a.md", "c.md"]
    assert [(b.path.name, b.referenced_from.name) for b in report.blocked] == [("a.md", "b.md")]
    assert names(report.deleted) == ["c.md"]
    assert (root / "a.md").exists()
    assert not (root / "c.md").exists()


def test_report_without_delete_touches_nothing(make_docset) -> None:
    root = make_docset({"TOC.md": "", "lonely.md": ""})
    report = find_orphaned_topics(root)
    assert report.deleted == []
    assert (root / "lonely.md").exists()


def test_duplicate_topics_count_every_toc(make_docset) -> None:
    root = make_docset(
        {
            "TOC.md": "[A](a.md)\n[A again](a.md#part)\n[B](b.md)\n",
            "guide/toc.yml": "- href: ../b.md\n- href: ../c.md\n",
            "a.md": "",
            "b.md": "",
            "c.md": "",
        }
    )
    report = find_duplicate_topics(root)
    assert [(c.path.name, c.count) for c in report.findings] == [("a.md", 2), ("b.md", 2)]
    assert report.scanned_files == 2


def test_orphaned_images_across_link_forms(make_docset) -> None:
    root = make_docset(
        {
            "topic.md": (
                "![inline](media/inline.png)\n"
                '<img src="media/html.png" />\n'
                "[ref]: media/ref.png\n"
                "![root](~/media/tilde.png)\n"
            ),
            "media/inline.png": "",
            "media/html.png": "",
            "media/ref.png": "",
            "media/tilde.png": "",
            "media/unused.png": "",
            "media/unused.jpg": "",
        }
    )
    report = find_orphaned_images(root / "media")
    assert names(c.path for c in report.findings) == ["unused.png"]


def test_orphaned_images_recursive_and_delete(make_docset) -> None:
    root = make_docset(
        {
            "guide/topic.md": "![a](../media/a.png)\n",
            "media/a.png": "",
            "media/old/b.png": "",
        }
    )
    assert find_orphaned_images(root / "media").findings == []
    report = find_orphaned_images(root / "media", recursive=True, delete=True)
    assert names(report.deleted) == ["b.png"]
    assert not (root / "media/old/b.png").exists()
    assert (root / "media/a.png").exists()


def test_include_referenced_then_orphaned(make_docset) -> None:
    root = make_docset(
        {
            "guide/topic.md": "Intro\n[!INCLUDE [note](../includes/note.md)]\n",
            "includes/note.md": "Note\n",
        }
    )
    assert find_orphaned_includes(root / "includes").findings == []
    (root / "guide/topic.md").write_text("Intro\n", encoding="utf-8")
    report = find_orphaned_includes(root / "includes")
    assert names(c.path for c in report.findings) == ["note.md"]


def test_include_scan_recurses_into_shared_dirs(make_docset) -> None:
    root = make_docset(
        {
            "a/topic.md": "[!INCLUDE[x](_shared/used.md)]\n",
            "a/_shared/used.md": "",
            "a/_shared/unused.md": "",
        }
    )
    report = find_orphaned_includes(root, recursive=True)
    assert names(c.path for c in report.findings) == ["unused.md"]


def test_malformed_links_become_warnings(make_docset) -> None:
    root = make_docset({"topic.md": "![x](media/a.png\n", "media/a.png": ""})
    report = find_orphaned_images(root / "media")
    assert names(c.path for c in report.findings) == ["a.png"]
    assert any("missing closing parenthesis" in w for w in report.warnings)


def test_rescan_after_adding_a_link_moves_count_to_one(tmp_path: Path) -> None:
    target = tmp_path / "x.png"
    source = tmp_path / "t.md"
    source.write_text("nothing here\n", encoding="utf-8")
    candidates = CandidateSet.from_paths("image", [target])
    count_references(candidates, [source], (LinkFormat.INLINE,), None)
    assert [c.count for c in candidates] == [0]
    source.write_text("![x](X.PNG)\n", encoding="utf-8")
    candidates = CandidateSet.from_paths("image", [target])
    assert count_references(candidates, [source], (LinkFormat.INLINE,), None) == 1
    assert [c.count for c in candidates] == [1]


def test_delete_failures_are_recorded_per_file(tmp_path: Path) -> None:
    present = tmp_path / "present.png"
    present.write_text("", encoding="utf-8")
    deleted, failures = delete_files([tmp_path / "gone.png", present])
    assert deleted == [present]
    assert len(failures) == 1 and "gone.png" in failures[0]


def test_custom_structural_topic_names(make_docset) -> None:
    root = make_docset({"TOC.md": "", "readme.md": "", "stray.md": ""})
    cfg = SweepConfig(structural_topic_names=("toc.md", "index.md", "readme.md"))
    assert names(c.path for c in find_orphaned_topics(root, config=cfg).findings) == ["stray.md"]


def test_img_with_data_src_keeps_real_source_referenced(make_docset) -> None:
    root = make_docset(
        {
            "topic.md": (
                '<img data-src="lazy.gif" src="media/a.png" />\n'
                '<img alt="see src=media/x.png" src="media/b.png">\n'
            ),
            "media/a.png": "",
            "media/b.png": "",
            "media/x.png": "",
        }
    )
    report = find_orphaned_images(root / "media", delete=True)
    assert names(c.path for c in report.findings) == ["x.png"]
    assert (root / "media/a.png").exists()
    assert (root / "media/b.png").exists()
