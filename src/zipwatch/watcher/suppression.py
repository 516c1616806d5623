"""Feedback-loop suppression for archives rewritten by the patch engine."""

from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict

logger = logging.getLogger(__name__)


class SuppressionCache:
    """Thread-safe set of archive paths whose next close-write must be ignored.

    Markers do not expire on their own: a path stays suppressed until
    :meth:`reset_all` runs, so each archive is patched at most once per reset
    cycle. With *max_entries* set, the least recently marked path is evicted
    once the bound is exceeded.
    """

    def __init__(self, max_entries: int | None = None) -> None:
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be a positive integer")
        self._entries: OrderedDict[str, bool] = OrderedDict()
        self._max_entries = max_entries
        self._lock = threading.Lock()

    def mark(self, path: str | os.PathLike[str]) -> None:
        """Suppress the next close-write event for *path*."""
        key = _key(path)
        with self._lock:
            self._entries[key] = True
            self._entries.move_to_end(key)
            if self._max_entries is not None:
                while len(self._entries) > self._max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted suppression marker: %s", evicted)

    def unmark(self, path: str | os.PathLike[str]) -> bool:
        """Drop the marker for *path*, returning whether one was set."""
        with self._lock:
            return self._entries.pop(_key(path), None) is not None

    def should_ignore(self, path: str | os.PathLike[str]) -> bool:
        """Return True when *path* carries a marker. The marker is kept."""
        with self._lock:
            return _key(path) in self._entries

    def reset_all(self) -> int:
        """Clear every marker and return how many were cleared."""
        with self._lock:
            cleared = len(self._entries)
            self._entries.clear()
        return cleared

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        return self.should_ignore(path)


def _key(path: str | os.PathLike[str]) -> str:
    return os.path.abspath(os.fspath(path))
