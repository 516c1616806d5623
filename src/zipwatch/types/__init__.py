"""Shared type aliases for Zipwatch."""

from .payloads import PayloadSet

__all__ = ["PayloadSet"]
