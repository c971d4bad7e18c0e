from __future__ import annotations

OK = 0
ERR_FINDINGS = 1
ERR_USAGE = 2
ERR_CONTEXT = 3
ERR_MANIFEST = 4
ERR_CONFIG = 5
ERR_INTERNAL = 99
