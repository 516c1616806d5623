"""Filesystem watching: suppression cache, watch registry, dispatcher and service."""

from __future__ import annotations

from typing import Any

from .inflight import InFlightPaths
from .suppression import SuppressionCache

__all__ = ["EventDispatcher", "InFlightPaths", "SuppressionCache", "WatchRegistry", "WatchService"]


def __getattr__(name: str) -> Any:
    """Lazily expose watchdog-backed classes so the cache stays importable on its own."""
    if name == "EventDispatcher":
        from .dispatcher import EventDispatcher

        return EventDispatcher
    if name == "WatchRegistry":
        from .registry import WatchRegistry

        return WatchRegistry
    if name == "WatchService":
        from .service import WatchService

        return WatchService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
