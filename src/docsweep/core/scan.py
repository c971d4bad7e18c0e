from __future__ import annotations

from pathlib import Path
from typing import Iterable

EXCLUDED_PARTS = frozenset({".git", "_site", "obj", "node_modules"})


def _is_excluded(path: Path, root: Path, excluded: frozenset[str]) -> bool:
    rel_parts = path.relative_to(root).parts[:-1]
    return any(part in excluded for part in rel_parts)


def iter_files(
    root: Path,
    suffixes: Iterable[str],
    recursive: bool = True,
    excluded: Iterable[str] = EXCLUDED_PARTS,
) -> list[Path]:
    wanted = {suffix.lower() for suffix in suffixes}
    skip = frozenset(excluded)
    candidates = root.rglob("*") if recursive else root.glob("*")
    out: list[Path] = []
    for path in sorted(candidates):
        if not path.is_file():
            continue
        if _is_excluded(path, root, skip):
            continue
        if path.suffix.lower() in wanted:
            out.append(path)
    return out


def iter_markdown_files(root: Path, recursive: bool = True, excluded: Iterable[str] = EXCLUDED_PARTS) -> list[Path]:
    return iter_files(root, {".md"}, recursive, excluded)


def iter_yaml_files(root: Path, recursive: bool = True, excluded: Iterable[str] = EXCLUDED_PARTS) -> list[Path]:
    return iter_files(root, {".yml", ".yaml"}, recursive, excluded)
