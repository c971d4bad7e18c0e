from __future__ import annotations

import argparse
import sys
import time
from os import getenv

from . import __version__
from .aggregate import (
    OrphanReport,
    find_duplicate_topics,
    find_orphaned_images,
    find_orphaned_includes,
    find_orphaned_topics,
)
from .config import SweepConfig, resolve_config
from .core.context import RunContext, resolve_output_format
from .core.errors import ScriptError
from .core.exit_codes import ERR_FINDINGS, ERR_INTERNAL, ERR_USAGE, OK
from .core.logging import log_event
from .redirects import RedirectReport, find_redirected_links
from .reporting import (
    emit,
    orphan_payload,
    redirect_payload,
    render_error,
    render_orphan_text,
    render_redirect_text,
)

COMMANDS = (
    "orphaned-topics",
    "duplicate-topics",
    "orphaned-images",
    "orphaned-includes",
    "redirected-links",
)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="docsweep", description="find unreferenced and redirected files in a docfx docset")
    p.add_argument("--version", action="version", version=f"docsweep {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--run-id", help="run identifier for log events")
    p.add_argument("--config", help="path to a docsweep YAML config")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="log start and finish events")
    vg.add_argument("--quiet", action="store_true", help="suppress warnings")
    sub = p.add_subparsers(dest="cmd", required=True)

    topics_p = sub.add_parser("orphaned-topics", help="find topics not listed in any TOC file")
    topics_p.add_argument("dir")
    topics_p.add_argument("--delete", action="store_true", help="delete orphans nothing else links to")

    dup_p = sub.add_parser("duplicate-topics", help="find topics listed more than once across TOC files")
    dup_p.add_argument("dir")

    images_p = sub.add_parser("orphaned-images", help="find image files no markdown file links to")
    images_p.add_argument("dir")
    images_p.add_argument("--recursive", action="store_true", help="include subdirectories")
    images_p.add_argument("--delete", action="store_true", help="delete orphaned images")

    inc_p = sub.add_parser("orphaned-includes", help="find include files no INCLUDE directive references")
    inc_p.add_argument("dir")
    inc_p.add_argument("--recursive", action="store_true", help="include subdirectories")
    inc_p.add_argument("--delete", action="store_true", help="delete orphaned include files")

    redir_p = sub.add_parser("redirected-links", help="find links to files listed in the redirect manifest")
    redir_p.add_argument("dir")
    redir_p.add_argument("--recursive", action="store_true", help="include subdirectories")
    redir_p.add_argument("--replace", action="store_true", help="rewrite links to their redirect URL")
    return p


def _run(ns: argparse.Namespace, ctx: RunContext, config: SweepConfig) -> OrphanReport | RedirectReport:
    if ns.cmd == "orphaned-topics":
        return find_orphaned_topics(ctx.input_dir, delete=ns.delete, config=config)
    if ns.cmd == "duplicate-topics":
        return find_duplicate_topics(ctx.input_dir, config=config)
    if ns.cmd == "orphaned-images":
        return find_orphaned_images(ctx.input_dir, recursive=ns.recursive, delete=ns.delete, config=config)
    if ns.cmd == "orphaned-includes":
        return find_orphaned_includes(ctx.input_dir, recursive=ns.recursive, delete=ns.delete, config=config)
    return find_redirected_links(ctx.input_dir, recursive=ns.recursive, replace=ns.replace, config=config)


def main(argv: list[str] | None = None) -> int:
    raw_argv = argv if argv is not None else sys.argv[1:]
    ns = build_parser().parse_args(raw_argv)
    fmt = resolve_output_format(cli_json=ns.json, cli_format=ns.format, ci_present=bool(getenv("CI")))
    ctx = RunContext.from_args(
        ns.run_id,
        ns.dir,
        fmt,
        verbose=ns.verbose,
        quiet=ns.quiet,
        log_json=ns.log_json,
        config_path=ns.config,
    )
    as_json = ctx.output_format == "json"
    try:
        if ns.format == "text" and ns.json:
            raise ScriptError("conflicting output flags: use either --format json or --json", ERR_USAGE, kind="usage")
        if not ctx.input_dir.is_dir():
            raise ScriptError(f"input directory not found: {ns.dir}", ERR_USAGE, kind="missing_input_dir")
        config = resolve_config(ctx.input_dir, ctx.config_path)
        if ctx.verbose:
            log_event(ctx, "info", "cli", "start", cmd=ns.cmd, input_dir=ctx.input_dir, config=config.source or "default")
        started = time.perf_counter()
        report = _run(ns, ctx, config)
        elapsed_ms = int((time.perf_counter() - started) * 1000)
        if not ctx.quiet:
            for message in report.warnings:
                log_event(ctx, "warn", ns.cmd, "diagnostic", message=message)
        if isinstance(report, RedirectReport):
            payload = redirect_payload(ctx, report, elapsed_ms)
            text = render_redirect_text(report, elapsed_ms)
        else:
            payload = orphan_payload(ctx, report, elapsed_ms)
            text = render_orphan_text(report, elapsed_ms)
        if as_json:
            emit(payload, as_json=True)
        else:
            print(text)
        if ctx.verbose:
            log_event(ctx, "info", "cli", "finish", cmd=ns.cmd, status=report.status, elapsed_ms=elapsed_ms)
        return OK if report.status == "pass" else ERR_FINDINGS
    except ScriptError as exc:
        print(render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(render_error(as_json=as_json, message=f"internal error: {exc}", code=ERR_INTERNAL), file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
