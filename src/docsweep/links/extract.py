"""Line-oriented link extraction.

Each rule pairs a format tag with one compiled pattern whose `target` group is
the raw, not yet normalized path text. Rules are independent: one line can
yield matches for several of them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Callable, Iterable, Iterator

Warn = Callable[[str], None]


class LinkFormat(str, Enum):
    INLINE = "inline"
    REFERENCE = "reference"
    HTML_IMG = "html_img"
    YAML_HREF = "yaml_href"
    INCLUDE = "include"


@dataclass(frozen=True)
class LinkOccurrence:
    raw: str
    fmt: LinkFormat
    source: Path | None
    line_no: int
    start: int
    end: int

    @property
    def base_dir(self) -> Path | None:
        return None if self.source is None else self.source.parent


@dataclass(frozen=True)
class ExtractionRule:
    fmt: LinkFormat
    pattern: re.Pattern[str]


_INLINE_RE = re.compile(r"\]\((?P<target>[^)\r\n]*)\)")
_REFERENCE_RE = re.compile(r"^\s*\[(?P<label>[^\]]+)\]:[ \t]*(?P<target>\S.*?)\s*$")
_HTML_IMG_RE = re.compile(
    r"<img\b"
    r"(?:\s+(?!src\s*=)[\w:-]+(?:\s*=\s*(?:\"[^\"]*\"|'[^']*'|[^\s>]+))?)*"
    r"\s+src\s*=\s*(?P<q>[\"']?)(?P<target>[^\"'\s>]+)(?P=q)",
    re.IGNORECASE,
)
_YAML_HREF_RE = re.compile(r"\bhref\s*:\s*(?P<q>[\"']?)(?P<target>[^\"'\s]+)(?P=q)", re.IGNORECASE)
_INCLUDE_OPEN_RE = re.compile(r"\[!INCLUDE", re.IGNORECASE)
_INCLUDE_ANY_RE = re.compile(r"\[!INCLUDE\s?\[[^\]]*\]\([^)]*\)\s*\]", re.IGNORECASE)

DEFAULT_INCLUDE_DIRS = ("includes", "_shared")


def _include_pattern(dir_names: tuple[str, ...]) -> re.Pattern[str]:
    dirs = "|".join(re.escape(name) for name in dir_names)
    return re.compile(
        r"\[!INCLUDE\s?\[(?P<label>[^\]]*)\]\(\s*"
        rf"(?P<target>(?:[^)\s]*?/)?(?:{dirs})/[^)]*?\.md)"
        r"\s*\)\s*\]",
        re.IGNORECASE,
    )


@lru_cache(maxsize=8)
def build_rules(include_dirs: tuple[str, ...] = DEFAULT_INCLUDE_DIRS) -> dict[LinkFormat, ExtractionRule]:
    return {
        LinkFormat.INLINE: ExtractionRule(LinkFormat.INLINE, _INLINE_RE),
        LinkFormat.REFERENCE: ExtractionRule(LinkFormat.REFERENCE, _REFERENCE_RE),
        LinkFormat.HTML_IMG: ExtractionRule(LinkFormat.HTML_IMG, _HTML_IMG_RE),
        LinkFormat.YAML_HREF: ExtractionRule(LinkFormat.YAML_HREF, _YAML_HREF_RE),
        LinkFormat.INCLUDE: ExtractionRule(LinkFormat.INCLUDE, _include_pattern(include_dirs)),
    }


def _noop(_message: str) -> None:
    return None


def _where(source: Path | None, line_no: int) -> str:
    return f"{source}:{line_no}" if source is not None else f"line {line_no}"


def _malformed_inline(line: str) -> list[int]:
    positions: list[int] = []
    idx = line.find("](")
    while idx != -1:
        if line.find(")", idx + 2) == -1:
            positions.append(idx)
            break
        idx = line.find("](", idx + 2)
    return positions


def _unbalanced_brackets(line: str) -> bool:
    if "](" not in line:
        return False
    plain = line.replace("\\[", "").replace("\\]", "")
    return plain.count("[") != plain.count("]")


def _malformed_includes(line: str) -> list[int]:
    return [m.start() for m in _INCLUDE_OPEN_RE.finditer(line) if not _INCLUDE_ANY_RE.match(line, m.start())]


def extract_links(
    line: str,
    formats: Iterable[LinkFormat],
    *,
    source: Path | None = None,
    line_no: int = 1,
    warn: Warn | None = None,
    include_dirs: tuple[str, ...] = DEFAULT_INCLUDE_DIRS,
) -> list[LinkOccurrence]:
    report = warn or _noop
    rules = build_rules(tuple(include_dirs))
    wanted = list(dict.fromkeys(formats))
    found: list[LinkOccurrence] = []
    for fmt in wanted:
        rule = rules[fmt]
        for match in rule.pattern.finditer(line):
            raw = match.group("target")
            if not raw.strip():
                continue
            found.append(
                LinkOccurrence(
                    raw=raw,
                    fmt=fmt,
                    source=source,
                    line_no=line_no,
                    start=match.start("target"),
                    end=match.end("target"),
                )
            )
    if LinkFormat.INLINE in wanted:
        for pos in _malformed_inline(line):
            report(f"{_where(source, line_no)}: malformed link, missing closing parenthesis: {line[pos:].strip()}")
        if _unbalanced_brackets(line):
            report(f"{_where(source, line_no)}: malformed link, unbalanced brackets: {line.strip()}")
    if LinkFormat.INCLUDE in wanted:
        for pos in _malformed_includes(line):
            report(f"{_where(source, line_no)}: malformed include directive: {line[pos:].strip()}")
    found.sort(key=lambda occ: (occ.start, occ.fmt.value))
    return found


def read_lines(path: Path, warn: Warn | None = None) -> list[str] | None:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        (warn or _noop)(f"{path}: unable to read file: {exc}")
        return None
    return text.splitlines()


def extract_file_links(
    path: Path,
    formats: Iterable[LinkFormat],
    warn: Warn | None = None,
    *,
    include_dirs: tuple[str, ...] = DEFAULT_INCLUDE_DIRS,
) -> Iterator[LinkOccurrence]:
    lines = read_lines(path, warn)
    if lines is None:
        return
    wanted = tuple(formats)
    for line_no, line in enumerate(lines, start=1):
        yield from extract_links(line, wanted, source=path, line_no=line_no, warn=warn, include_dirs=include_dirs)
