"""Directory watch registration, static and recursive."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from watchdog.events import FileSystemEventHandler

from zipwatch.exceptions import NoWatchableDirectoriesError, WatchRegistrationError

logger = logging.getLogger(__name__)


class SupportsSchedule(Protocol):
    """The slice of a watchdog observer the registry relies on."""

    def schedule(self, event_handler: FileSystemEventHandler, path: str, recursive: bool = False) -> object: ...


class WatchRegistry:
    """Owns the set of directories covered by observer watches.

    Plain roots get one non-recursive watch each. In recursive mode each
    root gets a single recursive watch, so the observer keeps one inotify
    instance per root and adds watches for new subdirectories itself; the
    registry only records which directories that watch covers. Entries are
    never removed, so deleted directories leave stale entries.
    """

    def __init__(self, observer: SupportsSchedule, handler: FileSystemEventHandler) -> None:
        self._observer = observer
        self._handler = handler
        self._watched: set[Path] = set()
        self._recursive_roots: set[Path] = set()
        self._lock = threading.Lock()

    @property
    def watched(self) -> frozenset[Path]:
        """Snapshot of the directories currently watched."""
        with self._lock:
            return frozenset(self._watched)

    def __len__(self) -> int:
        with self._lock:
            return len(self._watched)

    def add_watch(self, directory: Path | str, *, recursive: bool = False) -> bool:
        """Schedule a watch on *directory*; return False if it is already covered.

        With *recursive*, the single watch also covers every directory below
        *directory*, and the existing subtree is recorded as watched.

        Raises:
            WatchRegistrationError: *directory* is not an existing directory
                or the observer refused the watch.
        """
        path = Path(os.path.abspath(directory))
        with self._lock:
            if path in self._watched or self._covered(path):
                return False
            self._schedule(path, recursive=recursive)
        self._record(_walk_directories(path) if recursive else [path])
        return True

    def populate(self, roots: Iterable[Path | str], *, recursive: bool = False) -> frozenset[Path]:
        """Register watches for *roots* (and their subtrees when *recursive*).

        Roots that do not exist or are not directories are skipped. Nested
        roots are covered by their parent's recursive watch.

        Raises:
            NoWatchableDirectoriesError: Nothing ended up watched.
            WatchRegistrationError: A directory could not be registered.
        """
        if recursive:
            logger.info("Recursion is enabled, adding watches for all subdirectories")

        candidates: dict[Path, None] = {}
        for root in roots:
            base = Path(os.path.abspath(root))
            if not base.is_dir():
                logger.debug("Skipping %s: not a directory", base)
                continue
            candidates[base] = None

        # Parents first, so a nested root never gets a second recursive watch.
        for directory in sorted(candidates, key=lambda path: len(path.parts)):
            self.add_watch(directory, recursive=recursive)

        watched = self.watched
        if not watched:
            raise NoWatchableDirectoriesError("No watchable directories were specified")
        return watched

    def extend(self, directory: Path | str) -> list[Path]:
        """Record a newly created *directory* and any subdirectories it already has.

        Inside a recursive root the observer already watches the new subtree,
        so this only updates the registry. A directory outside every recursive
        root gets its own recursive watch. Returns the directories newly
        recorded; a directory that vanished before the scan adds nothing.
        """
        path = Path(os.path.abspath(directory))
        with self._lock:
            covered = self._covered(path)
        if not covered:
            if not path.is_dir():
                return []
            with self._lock:
                self._schedule(path, recursive=True)
        return self._record(_walk_directories(path))

    def _schedule(self, path: Path, *, recursive: bool) -> None:
        """Install one observer watch. Caller holds the lock."""
        if not path.is_dir():
            raise WatchRegistrationError(f"Cannot watch {path}: not a directory")
        try:
            self._observer.schedule(self._handler, str(path), recursive=recursive)
        except OSError as exc:
            raise WatchRegistrationError(f"Cannot watch {path}: {exc}") from exc
        if recursive:
            self._recursive_roots.add(path)

    def _covered(self, path: Path) -> bool:
        return any(path == root or root in path.parents for root in self._recursive_roots)

    def _record(self, directories: Iterable[Path]) -> list[Path]:
        added: list[Path] = []
        with self._lock:
            for directory in directories:
                if directory not in self._watched:
                    self._watched.add(directory)
                    added.append(directory)
        for directory in added:
            logger.info("Added a watch: %s", directory)
        return added


def _walk_directories(base: Path) -> list[Path]:
    """Return *base* and every directory below it, top-down, without following links."""
    return [Path(dirpath) for dirpath, _dirnames, _filenames in os.walk(base, onerror=_log_walk_error)]


def _log_walk_error(exc: OSError) -> None:
    logger.warning("Failed to scan directory %s: %s", exc.filename, exc)
