"""Upward marker-file discovery.

The search helpers never raise; the `require_*` wrappers turn a missing marker
into a `ScriptError` for operations that cannot run without it.
"""

from __future__ import annotations

from pathlib import Path

from .errors import ScriptError
from .exit_codes import ERR_CONTEXT

PROJECT_MARKER = "docfx.json"
REDIRECT_MANIFEST = ".openpublishing.redirection.json"


def find_marker_dir(start: Path, marker: str) -> Path | None:
    cur = Path(start).absolute()
    if cur.is_file():
        cur = cur.parent
    while True:
        if (cur / marker).is_file():
            return cur
        if cur.parent == cur:
            return None
        cur = cur.parent


def find_project_root(start: Path) -> Path | None:
    return find_marker_dir(start, PROJECT_MARKER)


def require_project_root(start: Path) -> Path:
    root = find_project_root(start)
    if root is None:
        raise ScriptError(
            f"could not find {PROJECT_MARKER} in '{start}' or any parent directory",
            ERR_CONTEXT,
            kind="missing_project_marker",
        )
    return root


def find_redirect_manifest(start: Path) -> Path | None:
    root = find_marker_dir(start, REDIRECT_MANIFEST)
    return None if root is None else root / REDIRECT_MANIFEST


def require_redirect_manifest(start: Path) -> Path:
    manifest = find_redirect_manifest(start)
    if manifest is None:
        raise ScriptError(
            f"could not find {REDIRECT_MANIFEST} for directory '{start}'",
            ERR_CONTEXT,
            kind="missing_redirect_manifest",
        )
    return manifest
