"""Archive patch engine."""

from .patcher import new_entry_info, patch_archive, temp_path_for
from .writer import ArchiveWriter

__all__ = ["ArchiveWriter", "new_entry_info", "patch_archive", "temp_path_for"]
