"""Configuration-related exceptions."""

from __future__ import annotations

from zipwatch.exceptions.base import ZipwatchError


class ConfigError(ZipwatchError, ValueError):
    """Raised when watcher configuration or payloads are invalid."""


class NoWatchableDirectoriesError(ConfigError):
    """Raised when none of the configured roots can be watched."""
