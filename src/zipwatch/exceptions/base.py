"""Base exception for Zipwatch."""

from __future__ import annotations


class ZipwatchError(Exception):
    """Base class for all errors raised by Zipwatch."""
