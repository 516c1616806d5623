"""Config data model for the watch service."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from zipwatch.constants.archive import DEFAULT_ARCHIVE_EXTENSIONS
from zipwatch.constants.config import DEFAULT_LOG_LEVEL


@dataclass(frozen=True)
class WatchConfig:
    """Resolved watcher config."""

    roots: tuple[str, ...] = ()
    recursive: bool = False
    extensions: tuple[str, ...] = DEFAULT_ARCHIVE_EXTENSIONS
    payloads: tuple[tuple[str, Path], ...] = ()
    max_workers: int | None = None
    suppression_max_entries: int | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def payload_files(self) -> dict[str, Path]:
        """Configured payload files keyed by archive entry name."""
        return dict(self.payloads)
