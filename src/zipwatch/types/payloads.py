"""Payload mapping types."""

from __future__ import annotations

from collections.abc import Mapping

# Archive entry name -> replacement bytes. Read-only once built.
type PayloadSet = Mapping[str, bytes]
