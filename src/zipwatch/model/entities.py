"""Result models returned by the patch engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PatchResult:
    """Outcome of one successful archive rewrite."""

    archive_path: Path
    replaced: tuple[str, ...] = ()
    added: tuple[str, ...] = ()
    copied: int = 0

    @property
    def entry_count(self) -> int:
        """Total number of entries in the rewritten archive."""
        return self.copied + len(self.replaced) + len(self.added)
