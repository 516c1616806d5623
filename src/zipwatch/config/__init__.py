"""Configuration loading, validation, and normalization for Zipwatch."""

from __future__ import annotations

from zipwatch.config.loader import apply_overrides, load_config, normalize_extension
from zipwatch.config.model import WatchConfig

__all__ = [
    "WatchConfig",
    "apply_overrides",
    "load_config",
    "normalize_extension",
]
