"""Core data models for Zipwatch."""

from .entities import PatchResult

__all__ = ["PatchResult"]
