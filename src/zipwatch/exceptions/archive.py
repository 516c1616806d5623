"""Archive patching exceptions."""

from __future__ import annotations

from zipwatch.exceptions.base import ZipwatchError


class PatchError(ZipwatchError):
    """Raised when a single archive patch attempt fails."""


class ArchiveOpenError(PatchError):
    """Raised when the source file cannot be opened as a ZIP archive."""


class ArchiveIOError(PatchError):
    """Raised when the rewrite fails after the source archive was opened."""
