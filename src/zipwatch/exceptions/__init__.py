"""Shared exception hierarchy for Zipwatch."""

from __future__ import annotations

from .archive import ArchiveIOError, ArchiveOpenError, PatchError
from .base import ZipwatchError
from .config import ConfigError, NoWatchableDirectoriesError
from .watch import WatchRegistrationError

__all__ = [
    "ArchiveIOError",
    "ArchiveOpenError",
    "ConfigError",
    "NoWatchableDirectoriesError",
    "PatchError",
    "WatchRegistrationError",
    "ZipwatchError",
]
