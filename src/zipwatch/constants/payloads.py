"""Bundled payload defaults."""

from __future__ import annotations

DEFAULT_PAYLOAD_RESOURCE: str = "hello.txt"
DEFAULT_PAYLOAD_ENTRIES: tuple[str, ...] = (
    "a/test.txt",
    "b/test.txt",
    "c/test.txt",
)
PAYLOAD_ARG_SEPARATOR: str = "="
