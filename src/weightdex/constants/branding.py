"""Branding constants for terminal output."""

from __future__ import annotations

BRAND_NAME: str = "WEIGHTDEX"
ASCII_LOGO_LINES: tuple[str, ...] = (
    ">_ WEIGHTDEX",
    "     // model weights and preview metadata indexer",
)
SCAN_SUMMARY_TITLE: str = "Scan summary"
CLI_DESCRIPTION: str = "\n".join((*ASCII_LOGO_LINES, "", f"{BRAND_NAME} model library indexer"))
