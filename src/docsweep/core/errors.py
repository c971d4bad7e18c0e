"""Fatal errors for docsweep reports.

`kind` names the failure for JSON error payloads: `usage`, `missing_input_dir`,
`missing_project_marker`, `missing_redirect_manifest`, `invalid_manifest`,
`missing_config` and `invalid_config`.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message
