"""Configuration defaults and filenames."""

from __future__ import annotations

CONFIG_FILENAME: str = "zipwatch.yaml"

DEFAULT_LOG_LEVEL: str = "INFO"
VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR"})

ALLOWED_CONFIG_KEYS: frozenset[str] = frozenset(
    {
        "roots",
        "recursive",
        "extensions",
        "payloads",
        "max_workers",
        "suppression_max_entries",
        "log_level",
    }
)

DISPATCHER_THREAD_NAME: str = "zipwatch-dispatcher"
PATCH_THREAD_PREFIX: str = "zipwatch-patch"
SERVICE_POLL_INTERVAL_SECONDS: float = 0.5
