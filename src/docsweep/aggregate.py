"""Fold extracted links into per-candidate reference counters.

Counting is a single pass over the source files with a dictionary lookup per
link. Deletion is requested by the caller and only ever runs after the whole
count has finished.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from .candidates import (
    Candidate,
    CandidateSet,
    collect_images,
    collect_includes,
    collect_topics,
    find_toc_files,
    markdown_sources,
)
from .config import SweepConfig
from .core.diagnostics import Diagnostics
from .core.markers import require_project_root
from .links.extract import DEFAULT_INCLUDE_DIRS, LinkFormat, Warn, extract_file_links
from .links.normalize import canonical_key, normalize_occurrence

IMAGE_FORMATS = (LinkFormat.INLINE, LinkFormat.REFERENCE, LinkFormat.HTML_IMG)
INCLUDE_FORMATS = (LinkFormat.INCLUDE,)
TOPIC_LINK_FORMATS = (LinkFormat.INLINE, LinkFormat.REFERENCE, LinkFormat.HTML_IMG, LinkFormat.YAML_HREF)

FormatSelector = Callable[[Path], tuple[LinkFormat, ...]]


@dataclass(frozen=True)
class BlockedDeletion:
    path: Path
    referenced_from: Path


@dataclass
class OrphanReport:
    kind: str
    input_dir: Path
    project_root: Path
    scanned_files: int
    candidate_count: int
    findings: list[Candidate]
    delete_requested: bool = False
    deleted: list[Path] = field(default_factory=list)
    blocked: list[BlockedDeletion] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "pass" if not self.findings else "fail"


def toc_formats(path: Path) -> tuple[LinkFormat, ...]:
    if path.suffix.lower() in {".yml", ".yaml"}:
        return (LinkFormat.YAML_HREF,)
    return (LinkFormat.INLINE,)


def count_references(
    candidates: CandidateSet,
    sources: Iterable[Path],
    formats: tuple[LinkFormat, ...] | FormatSelector,
    project_root: Path | None,
    warn: Warn | None = None,
    include_dirs: tuple[str, ...] = DEFAULT_INCLUDE_DIRS,
) -> int:
    hits = 0
    for source in sources:
        wanted = formats(source) if callable(formats) else formats
        for occ in extract_file_links(source, wanted, warn, include_dirs=include_dirs):
            if candidates.increment(normalize_occurrence(occ, project_root, warn)):
                hits += 1
    return hits


def find_blocking_references(
    orphans: Iterable[Candidate],
    sources: Iterable[Path],
    project_root: Path | None,
    warn: Warn | None = None,
) -> dict[str, Path]:
    pending = {c.key for c in orphans}
    blocking: dict[str, Path] = {}
    for source in sources:
        if not pending:
            break
        source_key = canonical_key(source)
        for occ in extract_file_links(source, TOPIC_LINK_FORMATS, warn):
            key = normalize_occurrence(occ, project_root, warn)
            if key is None or key == source_key or key not in pending:
                continue
            blocking[key] = source
            pending.discard(key)
    return blocking


def delete_files(paths: Iterable[Path]) -> tuple[list[Path], list[str]]:
    deleted: list[Path] = []
    failures: list[str] = []
    for path in paths:
        try:
            path.unlink()
        except OSError as exc:
            failures.append(f"unable to delete {path}: {exc}")
            continue
        deleted.append(path)
    return deleted, failures


def _report(
    kind: str,
    input_dir: Path,
    project_root: Path,
    sources: list[Path],
    candidates: CandidateSet,
    findings: list[Candidate],
    diagnostics: Diagnostics,
    delete: bool,
) -> OrphanReport:
    return OrphanReport(
        kind=kind,
        input_dir=input_dir,
        project_root=project_root,
        scanned_files=len(sources),
        candidate_count=len(candidates),
        findings=findings,
        delete_requested=delete,
        warnings=diagnostics.messages,
    )


def find_orphaned_images(
    input_dir: Path,
    recursive: bool = False,
    delete: bool = False,
    config: SweepConfig | None = None,
) -> OrphanReport:
    cfg = config or SweepConfig()
    project_root = require_project_root(input_dir)
    diagnostics = Diagnostics()
    candidates = collect_images(input_dir, recursive, cfg)
    sources = markdown_sources(project_root, cfg)
    count_references(candidates, sources, IMAGE_FORMATS, project_root, diagnostics.warn)
    report = _report("orphaned-images", input_dir, project_root, sources, candidates, candidates.orphans(), diagnostics, delete)
    if delete:
        report.deleted, report.failures = delete_files(c.path for c in report.findings)
    return report


def find_orphaned_includes(
    input_dir: Path,
    recursive: bool = False,
    delete: bool = False,
    config: SweepConfig | None = None,
) -> OrphanReport:
    cfg = config or SweepConfig()
    project_root = require_project_root(input_dir)
    diagnostics = Diagnostics()
    candidates = collect_includes(input_dir, recursive, cfg)
    sources = markdown_sources(project_root, cfg)
    count_references(
        candidates,
        sources,
        INCLUDE_FORMATS,
        project_root,
        diagnostics.warn,
        include_dirs=cfg.include_dir_names,
    )
    report = _report("orphaned-includes", input_dir, project_root, sources, candidates, candidates.orphans(), diagnostics, delete)
    if delete:
        report.deleted, report.failures = delete_files(c.path for c in report.findings)
    return report


def count_topic_listings(
    input_dir: Path,
    config: SweepConfig,
    diagnostics: Diagnostics,
) -> tuple[Path, list[Path], CandidateSet]:
    project_root = require_project_root(input_dir)
    candidates = collect_topics(project_root, config)
    tocs = find_toc_files(project_root, config)
    count_references(candidates, tocs, toc_formats, project_root, diagnostics.warn)
    return project_root, tocs, candidates


def find_orphaned_topics(
    input_dir: Path,
    delete: bool = False,
    config: SweepConfig | None = None,
) -> OrphanReport:
    cfg = config or SweepConfig()
    diagnostics = Diagnostics()
    project_root, tocs, candidates = count_topic_listings(input_dir, cfg, diagnostics)
    orphans = candidates.orphans()
    report = _report("orphaned-topics", input_dir, project_root, tocs, candidates, orphans, diagnostics, delete)
    if not delete or not orphans:
        return report
    blocking = find_blocking_references(orphans, markdown_sources(project_root, cfg), project_root, diagnostics.warn)
    removable: list[Path] = []
    for orphan in orphans:
        referenced_from = blocking.get(orphan.key)
        if referenced_from is not None:
            report.blocked.append(BlockedDeletion(orphan.path, referenced_from))
        else:
            removable.append(orphan.path)
    report.deleted, report.failures = delete_files(removable)
    return report


def find_duplicate_topics(input_dir: Path, config: SweepConfig | None = None) -> OrphanReport:
    cfg = config or SweepConfig()
    diagnostics = Diagnostics()
    project_root, tocs, candidates = count_topic_listings(input_dir, cfg, diagnostics)
    return _report("duplicate-topics", input_dir, project_root, tocs, candidates, candidates.multiples(), diagnostics, False)
