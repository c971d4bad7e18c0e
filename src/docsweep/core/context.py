from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    input_dir: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    config_path: Path | None

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        input_dir: str | Path,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
        config_path: str | None = None,
    ) -> "RunContext":
        default_run = f"docsweep-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"
        resolved_run_id = run_id or os.environ.get("RUN_ID", default_run)
        return cls(
            run_id=resolved_run_id,
            input_dir=Path(os.path.abspath(input_dir)),
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            config_path=Path(config_path).expanduser() if config_path else None,
        )


def resolve_output_format(*, cli_json: bool, cli_format: str | None, ci_present: bool) -> OutputFormat:
    if cli_json:
        return "json"
    if cli_format == "json":
        return "json"
    if cli_format == "text":
        return "text"
    return "json" if ci_present else "text"
