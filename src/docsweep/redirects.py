"""Find, and optionally rewrite, links whose target has been redirected."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .config import SweepConfig
from .core.diagnostics import Diagnostics
from .core.errors import ScriptError
from .core.exit_codes import ERR_MANIFEST
from .core.markers import find_project_root, require_redirect_manifest
from .core.scan import iter_markdown_files, iter_yaml_files
from .core.schema import validate_payload
from .links.extract import LinkFormat, Warn, extract_file_links
from .links.normalize import canonical_key, link_target_span, normalize_occurrence

MARKDOWN_FORMATS = (LinkFormat.INLINE, LinkFormat.REFERENCE)
YAML_FORMATS = (LinkFormat.YAML_HREF,)


@dataclass(frozen=True)
class RedirectEntry:
    source_path: str
    redirect_url: str
    redirect_document_id: bool
    key: str


@dataclass(frozen=True)
class RedirectHit:
    source: Path
    line_no: int
    start: int
    end: int
    raw_path: str
    redirect_url: str


@dataclass
class RedirectReport:
    input_dir: Path
    manifest: Path
    redirect_count: int
    scanned_files: int
    hits: list[RedirectHit]
    replace_requested: bool = False
    rewritten: list[Path] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "pass" if not self.hits else "fail"

    def hits_by_file(self) -> dict[Path, list[RedirectHit]]:
        grouped: dict[Path, list[RedirectHit]] = {}
        for hit in self.hits:
            grouped.setdefault(hit.source, []).append(hit)
        return grouped


def _manifest_error(source: Path, message: str) -> ScriptError:
    return ScriptError(f"{source}: {message}", ERR_MANIFEST, kind="invalid_manifest")


def parse_manifest_text(text: str, source: Path) -> list[dict[str, Any]]:
    """Parse the redirect array, tolerating a wrapper object and trailing noise."""
    data: Any = None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("redirections"), list):
        data = data["redirections"]
    if not isinstance(data, list):
        stripped = text.strip()
        start = stripped.find("[")
        if start < 0:
            raise _manifest_error(source, "no redirect array found")
        body = stripped[start:].rstrip("} \t\r\n")
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise _manifest_error(source, f"unable to parse redirects: {exc}") from exc
    validate_payload(data, "redirects.schema.json", ERR_MANIFEST, source=source, kind="invalid_manifest")
    return data


def load_redirects(manifest: Path, warn: Warn | None = None) -> dict[str, RedirectEntry]:
    try:
        text = manifest.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise _manifest_error(manifest, f"unable to read redirects: {exc}") from exc
    base = os.fspath(manifest.parent)
    entries: dict[str, RedirectEntry] = {}
    for row in parse_manifest_text(text, manifest):
        source_path = str(row["source_path"])
        key = canonical_key(os.path.join(base, source_path.replace("\\", "/").lstrip("/")))
        if key in entries:
            if warn:
                warn(f"{manifest}: duplicate redirect source '{source_path}' ignored")
            continue
        entries[key] = RedirectEntry(
            source_path=source_path,
            redirect_url=str(row["redirect_url"]),
            redirect_document_id=bool(row.get("redirect_document_id", False)),
            key=key,
        )
    return entries


def linking_files(input_dir: Path, recursive: bool, config: SweepConfig) -> list[Path]:
    return sorted(
        iter_markdown_files(input_dir, recursive, config.excluded_dirs)
        + iter_yaml_files(input_dir, recursive, config.excluded_dirs)
    )


def match_redirect_links(
    redirects: dict[str, RedirectEntry],
    sources: Iterable[Path],
    project_root: Path | None,
    warn: Warn | None = None,
) -> list[RedirectHit]:
    hits: list[RedirectHit] = []
    for source in sources:
        formats = YAML_FORMATS if source.suffix.lower() in {".yml", ".yaml"} else MARKDOWN_FORMATS
        for occ in extract_file_links(source, formats, warn):
            entry = redirects.get(normalize_occurrence(occ, project_root, warn) or "")
            if entry is None:
                continue
            offset, path_text = link_target_span(occ.raw, occ.fmt)
            start = occ.start + offset
            hits.append(
                RedirectHit(
                    source=source,
                    line_no=occ.line_no,
                    start=start,
                    end=start + len(path_text),
                    raw_path=path_text,
                    redirect_url=entry.redirect_url,
                )
            )
    return hits


def rewrite_file(path: Path, hits: list[RedirectHit]) -> None:
    with path.open("r", encoding="utf-8", newline="") as handle:
        lines = handle.read().splitlines(keepends=True)
    for hit in sorted(hits, key=lambda h: (h.line_no, h.start), reverse=True):
        line = lines[hit.line_no - 1]
        if line[hit.start : hit.end] != hit.raw_path:
            raise ValueError(f"line {hit.line_no} no longer contains '{hit.raw_path}'")
        lines[hit.line_no - 1] = line[: hit.start] + hit.redirect_url + line[hit.end :]
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write("".join(lines))


def rewrite_links(hits: list[RedirectHit]) -> tuple[list[Path], list[str]]:
    grouped: dict[Path, list[RedirectHit]] = {}
    for hit in hits:
        grouped.setdefault(hit.source, []).append(hit)
    rewritten: list[Path] = []
    failures: list[str] = []
    for path, file_hits in grouped.items():
        try:
            rewrite_file(path, file_hits)
        except (OSError, UnicodeError, ValueError, IndexError) as exc:
            failures.append(f"unable to rewrite {path}: {exc}")
            continue
        rewritten.append(path)
    return rewritten, failures


def find_redirected_links(
    input_dir: Path,
    recursive: bool = False,
    replace: bool = False,
    config: SweepConfig | None = None,
) -> RedirectReport:
    cfg = config or SweepConfig()
    manifest = require_redirect_manifest(input_dir)
    diagnostics = Diagnostics()
    redirects = load_redirects(manifest, diagnostics.warn)
    sources = linking_files(input_dir, recursive, cfg)
    hits = match_redirect_links(redirects, sources, find_project_root(input_dir), diagnostics.warn) if redirects else []
    report = RedirectReport(
        input_dir=input_dir,
        manifest=manifest,
        redirect_count=len(redirects),
        scanned_files=len(sources),
        hits=hits,
        replace_requested=replace,
        warnings=diagnostics.messages,
    )
    if replace and hits:
        report.rewritten, report.failures = rewrite_links(hits)
    return report
