"""Long-running watch service tying observer, registry, dispatcher and workers together."""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from pathlib import Path

from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from zipwatch.config import WatchConfig
from zipwatch.constants.config import (
    DISPATCHER_THREAD_NAME,
    PATCH_THREAD_PREFIX,
    SERVICE_POLL_INTERVAL_SECONDS,
)
from zipwatch.exceptions import WatchRegistrationError
from zipwatch.types import PayloadSet
from zipwatch.watcher.dispatcher import EventDispatcher, EventQueueHandler, QueueItem
from zipwatch.watcher.inflight import InFlightPaths
from zipwatch.watcher.registry import WatchRegistry
from zipwatch.watcher.suppression import SuppressionCache

logger = logging.getLogger(__name__)


class WatchService:
    """Own one suppression cache, watch registry and dispatcher for a process.

    Typical use::

        service = WatchService(config, payloads)
        try:
            service.start()
            service.wait()
        finally:
            service.stop()
    """

    def __init__(
        self,
        config: WatchConfig,
        payloads: PayloadSet,
        *,
        observer: BaseObserver | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.config = config
        self.suppression = SuppressionCache(max_entries=config.suppression_max_entries)
        self.inflight = InFlightPaths()
        self._observer = observer if observer is not None else Observer()
        self._executor = (
            executor
            if executor is not None
            else ThreadPoolExecutor(max_workers=config.max_workers, thread_name_prefix=PATCH_THREAD_PREFIX)
        )
        events: queue.Queue[QueueItem] = queue.Queue()
        self.registry = WatchRegistry(self._observer, EventQueueHandler(events))
        self.dispatcher = EventDispatcher(
            events=events,
            registry=self.registry,
            suppression=self.suppression,
            inflight=self.inflight,
            executor=self._executor,
            payloads=payloads,
            recursive=config.recursive,
            extensions=config.extensions,
        )
        self._thread: threading.Thread | None = None
        self._observer_started = False
        self._stopped = False

    def start(self) -> frozenset[Path]:
        """Register watches, then start the observer and the dispatcher thread.

        Raises:
            NoWatchableDirectoriesError: None of the roots can be watched.
            WatchRegistrationError: A watch could not be installed, either
                while scheduling or when the observer created its watches.
        """
        watched = self.registry.populate(self.config.roots, recursive=self.config.recursive)
        try:
            self._observer.start()
        except OSError as exc:
            # Emitters started before the failure are still running.
            self._observer.stop()
            raise WatchRegistrationError(f"Cannot start watching: {exc}") from exc
        self._observer_started = True
        self._thread = threading.Thread(target=self.dispatcher.run, name=DISPATCHER_THREAD_NAME, daemon=True)
        self._thread.start()
        logger.info("Watching %d director%s", len(watched), "y" if len(watched) == 1 else "ies")
        return watched

    def wait(self, poll_interval: float = SERVICE_POLL_INTERVAL_SECONDS) -> None:
        """Block until the dispatcher exits, re-raising its fatal error if any.

        Joins in short slices so signal handlers keep running on the caller's
        thread.
        """
        if self._thread is None:
            return
        while self._thread.is_alive():
            self._thread.join(poll_interval)
        if self.dispatcher.fatal_error is not None:
            raise self.dispatcher.fatal_error

    def request_stop(self) -> None:
        """Ask the dispatcher to exit. Safe to call from a signal handler."""
        self.dispatcher.close()

    def reset_suppression(self) -> int:
        """Clear the suppression cache so patched archives can be patched again."""
        cleared = self.suppression.reset_all()
        logger.info("Cleared %d entr%s from the ignored files cache", cleared, "y" if cleared == 1 else "ies")
        return cleared

    def stop(self) -> None:
        """Stop observing, drain the dispatcher and wait for running patches."""
        if self._stopped:
            return
        self._stopped = True
        if self._observer_started:
            self._observer.stop()
            self._observer.join()
        if self._thread is not None and self._thread.is_alive():
            self.dispatcher.close()
            self._thread.join()
        self._executor.shutdown(wait=True)
        logger.debug("Watch service stopped")
