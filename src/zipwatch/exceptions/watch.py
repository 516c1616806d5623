"""Watch registration exceptions."""

from __future__ import annotations

from zipwatch.exceptions.base import ZipwatchError


class WatchRegistrationError(ZipwatchError, OSError):
    """Raised when a directory watch cannot be installed.

    An unwatched directory silently loses patch coverage, so callers treat
    this as fatal.
    """
