"""Branding constants for terminal output."""

from __future__ import annotations

BRAND_NAME: str = "ZIPWATCH"
ASCII_LOGO_LINES: tuple[str, ...] = (
    ">_ ZIPWATCH",
    "     // payload injection for ZIP and JAR archives",
)
CLI_DESCRIPTION: str = "\n".join((*ASCII_LOGO_LINES, "", f"{BRAND_NAME} archive watcher"))
