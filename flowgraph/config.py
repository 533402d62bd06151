"""flowgraph settings: tunable parameters read from environment variables.

All values have defaults suitable for local runs. Import from here instead of
hardcoding.
"""

from __future__ import annotations

import os
from pathlib import Path


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


def _bool(key: str, default: bool) -> bool:
    return os.getenv(key, "true" if default else "false").lower() in ("true", "1", "yes")


# =====================================================================
# Logging
# =====================================================================

# Log directory, configurable for containers
LOG_DIR = Path(_str("FLOWGRAPH_LOG_DIR", str(Path.cwd() / "logs")))

LOG_LEVEL = _str("FLOWGRAPH_LOG_LEVEL", "INFO").upper()

# Write log files in addition to the console
LOG_TO_FILE = _bool("FLOWGRAPH_LOG_TO_FILE", False)


# =====================================================================
# Workflow execution
# =====================================================================

# Base directory for relative workflow file paths ("" = current directory)
WORKFLOW_DIR = _str("FLOWGRAPH_WORKFLOW_DIR", "")

# Per-run timeout in seconds, polled between node invocations (0 = no timeout)
RUN_TIMEOUT = _float("FLOWGRAPH_RUN_TIMEOUT", 0.0)


# =====================================================================
# HTTP server
# =====================================================================

API_HOST = _str("FLOWGRAPH_API_HOST", "0.0.0.0")
API_PORT = _int("FLOWGRAPH_API_PORT", 8000)
