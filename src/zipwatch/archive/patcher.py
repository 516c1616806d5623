"""In-place archive patching with an atomic commit.

The rewrite goes to a hidden ``.<name>.swp`` sibling and only replaces the
original through ``os.replace`` once the new archive is complete, so readers
of the original path never see a partial archive.
"""

from __future__ import annotations

import logging
import os
import shutil
import zipfile
from collections.abc import Mapping
from contextlib import suppress
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from zipwatch.archive.writer import ArchiveWriter
from zipwatch.constants.archive import (
    APPENDED_ENTRY_COMPRESSION,
    APPENDED_ENTRY_DATE_TIME,
    APPENDED_ENTRY_EXTERNAL_ATTR,
    TEMP_PREFIX,
    TEMP_SUFFIX,
)
from zipwatch.exceptions import ArchiveIOError, ArchiveOpenError
from zipwatch.model import PatchResult

if TYPE_CHECKING:
    from zipwatch.watcher.suppression import SuppressionCache

logger = logging.getLogger(__name__)


def temp_path_for(archive_path: Path) -> Path:
    """Return the work-in-progress sibling used while rewriting *archive_path*."""
    return archive_path.with_name(f"{TEMP_PREFIX}{archive_path.name}{TEMP_SUFFIX}")


def new_entry_info(name: str) -> zipfile.ZipInfo:
    """Build metadata for an entry that is not present in the source archive."""
    info = zipfile.ZipInfo(name, date_time=APPENDED_ENTRY_DATE_TIME)
    info.compress_type = APPENDED_ENTRY_COMPRESSION
    info.external_attr = APPENDED_ENTRY_EXTERNAL_ATTR
    return info


def patch_archive(
    archive_path: Path | str,
    overrides: Mapping[str, bytes],
    *,
    suppression: SuppressionCache | None = None,
) -> PatchResult:
    """Replace or append *overrides* in the archive at *archive_path*.

    Entries named in *overrides* get the override bytes (first occurrence
    only, keeping the original entry's metadata); every other entry is
    copied without recompression; overrides never matched are appended.
    When *suppression* is given, the path is marked right before the commit
    rename and unmarked again if the rename fails.

    Raises:
        ArchiveOpenError: The file is missing or is not a valid ZIP archive.
        ArchiveIOError: The rewrite or the commit failed. The original
            archive is left untouched.
    """
    archive_path = Path(os.path.abspath(archive_path))
    temp_path = temp_path_for(archive_path)

    try:
        source = archive_path.open("rb")
    except OSError as exc:
        raise ArchiveOpenError(f"Cannot open {archive_path}: {exc}") from exc

    with source:
        try:
            reader = zipfile.ZipFile(source)
        except (zipfile.BadZipFile, OSError) as exc:
            raise ArchiveOpenError(f"Cannot read {archive_path} as a ZIP archive: {exc}") from exc
        with reader:
            entries = reader.infolist()
            comment = reader.comment
            result = _rewrite(archive_path, temp_path, source, entries, comment, overrides)

    if suppression is not None:
        suppression.mark(archive_path)
    try:
        os.replace(temp_path, archive_path)
    except OSError as exc:
        if suppression is not None:
            suppression.unmark(archive_path)
        _discard(temp_path)
        raise ArchiveIOError(f"Failed to replace {archive_path}: {exc}") from exc

    logger.info(
        "Patched %s (%d replaced, %d added, %d copied)",
        archive_path,
        len(result.replaced),
        len(result.added),
        result.copied,
    )
    return result


def _rewrite(
    archive_path: Path,
    temp_path: Path,
    source: BinaryIO,
    entries: list[zipfile.ZipInfo],
    comment: bytes,
    overrides: Mapping[str, bytes],
) -> PatchResult:
    """Write the patched archive to *temp_path*, removing it on any failure."""
    pending = dict(overrides)
    replaced: list[str] = []
    added: list[str] = []
    copied = 0

    try:
        target = temp_path.open("wb")
    except OSError as exc:
        raise ArchiveIOError(f"Cannot create temporary file {temp_path}: {exc}") from exc

    try:
        with target, ArchiveWriter(target) as writer:
            for info in entries:
                if info.filename in pending:
                    writer.write_entry(info, pending.pop(info.filename))
                    replaced.append(info.filename)
                    logger.info("Updated -> %s:%s", archive_path, info.filename)
                else:
                    writer.copy_entry(info, source)
                    copied += 1

            for name in sorted(pending):
                writer.write_entry(new_entry_info(name), pending[name])
                added.append(name)
                logger.info("Added -> %s:%s", archive_path, name)

            writer.close(comment)
        shutil.copymode(archive_path, temp_path)
    except OSError as exc:
        _discard(temp_path)
        raise ArchiveIOError(f"Failed to rewrite {archive_path}: {exc}") from exc
    except BaseException:
        _discard(temp_path)
        raise

    return PatchResult(
        archive_path=archive_path,
        replaced=tuple(replaced),
        added=tuple(added),
        copied=copied,
    )


def _discard(path: Path) -> None:
    with suppress(OSError):
        path.unlink()
