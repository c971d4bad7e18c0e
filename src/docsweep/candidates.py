"""Enumerate the files each report judges for orphanhood."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from .config import SweepConfig
from .core.scan import iter_files, iter_markdown_files
from .links.normalize import canonical_key

TOC_SUFFIXES = (".md", ".yml", ".yaml")


@dataclass
class Candidate:
    path: Path
    key: str
    count: int = 0


class CandidateSet:
    """Candidates keyed by canonical path; paths differing only by case share one entry."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._items: dict[str, Candidate] = {}

    @classmethod
    def from_paths(cls, kind: str, paths: Iterable[Path]) -> "CandidateSet":
        out = cls(kind)
        for path in paths:
            out.add(path)
        return out

    def add(self, path: Path) -> Candidate:
        key = canonical_key(path)
        existing = self._items.get(key)
        if existing is not None:
            return existing
        candidate = Candidate(path=path, key=key)
        self._items[key] = candidate
        return candidate

    def get(self, key: str) -> Candidate | None:
        return self._items.get(key)

    def increment(self, key: str | None) -> bool:
        if key is None:
            return False
        candidate = self._items.get(key)
        if candidate is None:
            return False
        candidate.count += 1
        return True

    def orphans(self) -> list[Candidate]:
        return [c for c in self if c.count == 0]

    def multiples(self) -> list[Candidate]:
        return [c for c in self if c.count > 1]

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Candidate]:
        return iter(sorted(self._items.values(), key=lambda c: c.key))


def _under_include_dir(path: Path, root: Path, config: SweepConfig) -> bool:
    try:
        parts = path.relative_to(root).parts[:-1]
    except ValueError:
        parts = path.parts[:-1]
    return any(config.is_include_dir(part) for part in parts)


def _is_excluded_dir(path: Path, root: Path, config: SweepConfig) -> bool:
    return any(part in config.excluded_dirs for part in path.relative_to(root).parts)


def collect_images(input_dir: Path, recursive: bool, config: SweepConfig) -> CandidateSet:
    paths = iter_files(input_dir, config.image_extensions, recursive, config.excluded_dirs)
    return CandidateSet.from_paths("image", paths)


def include_directories(input_dir: Path, recursive: bool, config: SweepConfig) -> list[Path]:
    dirs: list[Path] = []
    if config.is_include_dir(input_dir.name):
        dirs.append(input_dir)
    if recursive:
        for path in sorted(input_dir.rglob("*")):
            if not path.is_dir() or _is_excluded_dir(path, input_dir, config):
                continue
            if config.is_include_dir(path.name):
                dirs.append(path)
    return dirs


def collect_includes(input_dir: Path, recursive: bool, config: SweepConfig) -> CandidateSet:
    out = CandidateSet("include")
    for directory in include_directories(input_dir, recursive, config):
        for path in sorted(directory.iterdir()):
            if path.is_file() and path.suffix.lower() == ".md":
                out.add(path)
    return out


def is_topic(path: Path, project_root: Path, config: SweepConfig) -> bool:
    if config.is_structural_topic(path.name):
        return False
    return not _under_include_dir(path, project_root, config)


def collect_topics(project_root: Path, config: SweepConfig) -> CandidateSet:
    paths = [
        path
        for path in iter_markdown_files(project_root, True, config.excluded_dirs)
        if is_topic(path, project_root, config)
    ]
    return CandidateSet.from_paths("topic", paths)


def find_toc_files(project_root: Path, config: SweepConfig) -> list[Path]:
    return [
        path
        for path in iter_files(project_root, TOC_SUFFIXES, True, config.excluded_dirs)
        if path.stem.casefold() == "toc"
    ]


def markdown_sources(project_root: Path, config: SweepConfig) -> list[Path]:
    return iter_markdown_files(project_root, True, config.excluded_dirs)
