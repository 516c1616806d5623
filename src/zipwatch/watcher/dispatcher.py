"""Event classification and routing for the watch loop."""

from __future__ import annotations

import logging
import os
import queue
import stat
from concurrent.futures import Executor, Future
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CLOSED,
    EVENT_TYPE_CREATED,
    FileSystemEvent,
    FileSystemEventHandler,
)

from zipwatch.archive import patch_archive
from zipwatch.constants.archive import DEFAULT_ARCHIVE_EXTENSIONS
from zipwatch.exceptions import PatchError, WatchRegistrationError
from zipwatch.model import PatchResult
from zipwatch.types import PayloadSet
from zipwatch.watcher.inflight import InFlightPaths
from zipwatch.watcher.registry import WatchRegistry
from zipwatch.watcher.suppression import SuppressionCache

logger = logging.getLogger(__name__)

_CLOSED = object()

type QueueItem = FileSystemEvent | BaseException | object


class EventQueueHandler(FileSystemEventHandler):
    """Watchdog handler that forwards the events we care about to a queue.

    Runs on the observer thread; all classification happens on the
    dispatcher thread.
    """

    def __init__(self, events: queue.Queue[QueueItem]) -> None:
        super().__init__()
        self._events = events

    def on_closed(self, event: FileSystemEvent) -> None:
        self._events.put(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._events.put(event)


class EventDispatcher:
    """Single control loop that routes filesystem events.

    Close-write events on archives are handed to the patch executor, new
    directories extend the watch registry in recursive mode, and error items
    are logged. A :class:`WatchRegistrationError` stops the loop and is kept
    in :attr:`fatal_error`.
    """

    def __init__(
        self,
        *,
        events: queue.Queue[QueueItem],
        registry: WatchRegistry,
        suppression: SuppressionCache,
        inflight: InFlightPaths,
        executor: Executor,
        payloads: PayloadSet,
        recursive: bool = False,
        extensions: tuple[str, ...] = DEFAULT_ARCHIVE_EXTENSIONS,
    ) -> None:
        self._events = events
        self._registry = registry
        self._suppression = suppression
        self._inflight = inflight
        self._executor = executor
        self._payloads = payloads
        self._recursive = recursive
        self._extensions = frozenset(extensions)
        self.fatal_error: WatchRegistrationError | None = None

    def report_error(self, exc: BaseException) -> None:
        """Queue an error for the loop to log. Safe from any thread."""
        self._events.put(exc)

    def close(self) -> None:
        """Ask the loop to exit after the events already queued."""
        self._events.put(_CLOSED)

    def run(self) -> None:
        """Consume queued items until :meth:`close` or a fatal error."""
        while True:
            item = self._events.get()
            if item is _CLOSED:
                logger.debug("Event queue closed, dispatcher exiting")
                return
            if isinstance(item, BaseException):
                logger.error("Watch error: %s", item, exc_info=item)
                continue
            try:
                self.dispatch(item)  # type: ignore[arg-type]
            except WatchRegistrationError as exc:
                logger.critical("Fatal: %s", exc)
                self.fatal_error = exc
                return
            except Exception:
                logger.exception("Failed to handle event %s", item)

    def dispatch(self, event: FileSystemEvent) -> None:
        """Classify one filesystem event and act on it."""
        path = os.fsdecode(event.src_path)
        try:
            info = os.stat(path)
        except OSError:
            return

        if event.event_type == EVENT_TYPE_CLOSED and stat.S_ISREG(info.st_mode) and self.is_archive(path):
            self._archive_written(os.path.abspath(path))

        # mkdir -p can outrun the new watch; extend() re-scans to catch up.
        if event.event_type == EVENT_TYPE_CREATED and stat.S_ISDIR(info.st_mode) and self._recursive:
            self._registry.extend(Path(path))

    def is_archive(self, path: str) -> bool:
        return os.path.splitext(path)[1] in self._extensions

    def _archive_written(self, archive_path: str) -> None:
        logger.info("A ZIP/JAR file was written here: %s", archive_path)
        if self._suppression.should_ignore(archive_path):
            logger.info("Skipping %s: already patched (send SIGUSR1 to clear the cache)", archive_path)
            return
        if not self._inflight.try_acquire(archive_path):
            logger.info("Skipping %s: a patch is already in progress", archive_path)
            return

        try:
            future = self._executor.submit(self._patch, archive_path)
        except RuntimeError as exc:
            self._inflight.release(archive_path)
            logger.warning("Cannot schedule patch for %s: %s", archive_path, exc)
            return
        future.add_done_callback(self._patch_done)

    def _patch(self, archive_path: str) -> PatchResult | None:
        try:
            return patch_archive(archive_path, self._payloads, suppression=self._suppression)
        except PatchError as exc:
            logger.warning("Patch failed for %s: %s", archive_path, exc)
            return None
        finally:
            self._inflight.release(archive_path)

    def _patch_done(self, future: Future[PatchResult | None]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self.report_error(exc)
