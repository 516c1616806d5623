"""Per-path guard so at most one patch runs per archive at a time."""

from __future__ import annotations

import os
import threading


class InFlightPaths:
    """Thread-safe check-and-set registry of archive paths being patched."""

    def __init__(self) -> None:
        self._paths: set[str] = set()
        self._lock = threading.Lock()

    def try_acquire(self, path: str | os.PathLike[str]) -> bool:
        """Claim *path*; False if a patch for it is already running."""
        key = os.path.abspath(os.fspath(path))
        with self._lock:
            if key in self._paths:
                return False
            self._paths.add(key)
            return True

    def release(self, path: str | os.PathLike[str]) -> None:
        with self._lock:
            self._paths.discard(os.path.abspath(os.fspath(path)))

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)
