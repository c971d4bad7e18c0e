"""Turn raw link text into canonical, case-folded absolute paths.

`normalize_link` returns `None` for anything that cannot name a file in the
docset: external URLs, root-relative paths, pure anchors and fragments the
path layer rejects. Rejections that point at broken input are reported
through `warn`; ordinary out-of-scope links are dropped silently.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Callable

from .extract import LinkFormat, LinkOccurrence

Warn = Callable[[str], None]

MAX_PATH_CHARS = 4096
MAX_COMPONENT_BYTES = 255

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")
_WS_RE = re.compile(r"\s")


def _noop(_message: str) -> None:
    return None


def canonical_key(path: str | Path) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path))).casefold()


def link_target_span(raw: str, fmt: LinkFormat = LinkFormat.INLINE) -> tuple[int, str]:
    """Return `(offset, path_text)` for the path token inside `raw`."""
    offset = len(raw) - len(raw.lstrip())
    text = raw.strip()
    if text.startswith("<") and ">" in text:
        offset += 1
        text = text[1 : text.index(">")]
    else:
        ws = _WS_RE.search(text)
        if ws:
            text = text[: ws.start()]
    hash_idx = text.find("#")
    if hash_idx > 0:
        text = text[:hash_idx]
    if fmt is LinkFormat.YAML_HREF:
        query_idx = text.find("?")
        if query_idx >= 0:
            text = text[:query_idx]
    return offset, text


def is_external(text: str) -> bool:
    if text.startswith(("/", "\\")):
        return True
    return bool(_SCHEME_RE.match(text))


def _check_limits(key: str) -> str | None:
    if len(key) > MAX_PATH_CHARS:
        return "path too long"
    for part in key.split(os.sep):
        if len(part.encode("utf-8", errors="surrogatepass")) > MAX_COMPONENT_BYTES:
            return "path component too long"
    return None


def normalize_link(
    raw: str,
    base_dir: Path | None,
    project_root: Path | None = None,
    fmt: LinkFormat = LinkFormat.INLINE,
    warn: Warn | None = None,
    source: Path | None = None,
) -> str | None:
    report = warn or _noop
    where = str(source) if source is not None else str(base_dir)
    _, text = link_target_span(raw, fmt)
    if not text or text.startswith("#"):
        return None
    if is_external(text):
        return None
    text = text.replace("\\", "/")
    if "\x00" in text:
        report(f"{where}: unable to resolve link '{raw.strip()}' (illegal characters)")
        return None
    if text.startswith("~/"):
        if project_root is None:
            report(f"{where}: unable to resolve root-relative link '{text}' (no project root)")
            return None
        combined = os.path.join(os.fspath(project_root), text[2:].lstrip("/"))
    else:
        if base_dir is None:
            return None
        combined = os.path.join(os.fspath(base_dir), text)
    try:
        key = canonical_key(combined)
    except (ValueError, OSError) as exc:
        report(f"{where}: unable to resolve link '{text}' ({exc})")
        return None
    problem = _check_limits(key)
    if problem:
        report(f"{where}: unable to resolve link '{text}' ({problem})")
        return None
    return key


def normalize_occurrence(occ: LinkOccurrence, project_root: Path | None, warn: Warn | None = None) -> str | None:
    return normalize_link(occ.raw, occ.base_dir, project_root, occ.fmt, warn, occ.source)
