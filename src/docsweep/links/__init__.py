"""Link extraction and normalization shared by every report."""

from __future__ import annotations

from .extract import LinkFormat, LinkOccurrence, extract_file_links, extract_links
from .normalize import canonical_key, link_target_span, normalize_link, normalize_occurrence

__all__ = [
    "LinkFormat",
    "LinkOccurrence",
    "canonical_key",
    "extract_file_links",
    "extract_links",
    "link_target_span",
    "normalize_link",
    "normalize_occurrence",
]
