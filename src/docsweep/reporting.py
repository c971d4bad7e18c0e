"""Report payloads and text rendering for CLI output."""

from __future__ import annotations

from pathlib import Path

from .aggregate import OrphanReport
from .core.context import RunContext
from .core.serialize import dumps_json
from .redirects import RedirectReport

TOOL = "docsweep"
SCHEMA_VERSION = 1

_NOUNS = {
    "orphaned-topics": "orphaned topics",
    "duplicate-topics": "topics listed more than once across TOC files",
    "orphaned-images": "orphaned image files",
    "orphaned-includes": "orphaned INCLUDE files",
}


def emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error") -> str:
    if as_json:
        return dumps_json(
            {
                "schema_version": SCHEMA_VERSION,
                "tool": TOOL,
                "status": "error",
                "errors": [{"code": code, "kind": kind, "message": message}],
            },
            pretty=False,
        )
    return message


def build_base_payload(ctx: RunContext, kind: str, status: str) -> dict[str, object]:
    return {
        "schema_version": SCHEMA_VERSION,
        "tool": TOOL,
        "kind": kind,
        "status": status,
        "run_id": ctx.run_id,
        "input_dir": str(ctx.input_dir),
    }


def orphan_payload(ctx: RunContext, report: OrphanReport, elapsed_ms: int) -> dict[str, object]:
    return {
        **build_base_payload(ctx, report.kind, report.status),
        "project_root": str(report.project_root),
        "scanned_files": report.scanned_files,
        "candidate_count": report.candidate_count,
        "finding_count": len(report.findings),
        "findings": [{"path": str(c.path), "count": c.count} for c in report.findings],
        "delete_requested": report.delete_requested,
        "deleted": [str(p) for p in report.deleted],
        "blocked": [{"path": str(b.path), "referenced_from": str(b.referenced_from)} for b in report.blocked],
        "failures": list(report.failures),
        "warnings": list(report.warnings),
        "elapsed_ms": elapsed_ms,
    }


def redirect_payload(ctx: RunContext, report: RedirectReport, elapsed_ms: int) -> dict[str, object]:
    return {
        **build_base_payload(ctx, "redirected-links", report.status),
        "manifest": str(report.manifest),
        "redirect_count": report.redirect_count,
        "scanned_files": report.scanned_files,
        "finding_count": len(report.hits),
        "findings": [
            {"file": str(h.source), "line": h.line_no, "path": h.raw_path, "redirect_url": h.redirect_url}
            for h in report.hits
        ],
        "replace_requested": report.replace_requested,
        "rewritten": [str(p) for p in report.rewritten],
        "failures": list(report.failures),
        "warnings": list(report.warnings),
        "elapsed_ms": elapsed_ms,
    }


def _elapsed(elapsed_ms: int) -> str:
    return f"Elapsed time: {elapsed_ms / 1000:.3f}s"


def render_orphan_text(report: OrphanReport, elapsed_ms: int) -> str:
    noun = _NOUNS.get(report.kind, report.kind)
    lines = [f"Found {len(report.findings)} {noun} (scanned {report.scanned_files} files, {report.candidate_count} candidates)."]
    for candidate in report.findings:
        if report.kind == "duplicate-topics":
            lines.append(f"  {candidate.path} (listed {candidate.count} times)")
        else:
            lines.append(f"  {candidate.path}")
    if report.delete_requested:
        lines.append(f"Deleted {len(report.deleted)} files.")
        for blocked in report.blocked:
            lines.append(f"Unable to delete {blocked.path}. It is referenced in {blocked.referenced_from}.")
        lines.extend(report.failures)
    lines.append(_elapsed(elapsed_ms))
    return "\n".join(lines)


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def render_redirect_text(report: RedirectReport, elapsed_ms: int) -> str:
    lines = [f"Loaded {report.redirect_count} redirects from {report.manifest}."]
    for source, hits in report.hits_by_file().items():
        lines.append(f"{_relative(source, report.input_dir)} contains the following links to redirected files:")
        for hit in hits:
            lines.append(f"  line {hit.line_no}: {hit.raw_path} -> {hit.redirect_url}")
    lines.append(f"Found {len(report.hits)} links to redirected files in {len(report.hits_by_file())} of {report.scanned_files} files.")
    if report.replace_requested:
        lines.append(f"Rewrote {len(report.rewritten)} files.")
        lines.extend(report.failures)
    lines.append(_elapsed(elapsed_ms))
    return "\n".join(lines)
