"""Constants for stdout formatting."""

from __future__ import annotations

ANSI_RESET: str = "\033[0m"
ANSI_RED: str = "\033[31m"
ANSI_GREEN: str = "\033[32m"
ANSI_YELLOW: str = "\033[33m"

MAX_ERROR_ROWS: int = 20
