"""Shared pytest fixtures for archive and watcher tests."""

from __future__ import annotations

import struct
import warnings
import zipfile
from collections.abc import Callable, Iterable
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Any

import pytest

EntrySpec = tuple[str, bytes] | tuple[str, bytes, int]
ArchiveFactory = Callable[..., Path]


class ImmediateExecutor(Executor):
    """Executor that runs submitted work inline on the caller's thread."""

    def __init__(self) -> None:
        self.submitted: list[tuple[Any, ...]] = []

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future[Any]:
        self.submitted.append(args)
        future: Future[Any] = Future()
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future


def write_archive(path: Path, entries: Iterable[EntrySpec], *, comment: bytes = b"") -> Path:
    """Write a ZIP archive with the given ``(name, data[, compress_type])`` entries."""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        with zipfile.ZipFile(path, "w") as archive:
            for entry in entries:
                name, data = entry[0], entry[1]
                compress_type = entry[2] if len(entry) > 2 else zipfile.ZIP_DEFLATED
                info = zipfile.ZipInfo(name, date_time=(2021, 6, 1, 12, 30, 44))
                info.compress_type = compress_type
                info.external_attr = 0o100600 << 16
                archive.writestr(info, data, compresslevel=9 if compress_type == zipfile.ZIP_DEFLATED else None)
            archive.comment = comment
    return path


def read_raw_entry(path: Path, info: zipfile.ZipInfo) -> bytes:
    """Return the compressed bytes stored for *info* in the archive at *path*."""
    with path.open("rb") as handle:
        handle.seek(info.header_offset)
        header = handle.read(30)
        name_length, extra_length = struct.unpack("<2H", header[26:30])
        handle.seek(name_length + extra_length, 1)
        return handle.read(info.compress_size)


def read_entries(path: Path) -> dict[str, bytes]:
    """Return the decompressed content of every entry keyed by name."""
    with zipfile.ZipFile(path) as archive:
        return {info.filename: archive.read(info) for info in archive.infolist()}


@pytest.fixture
def make_archive(tmp_path: Path) -> ArchiveFactory:
    """Return a factory that writes archives under ``tmp_path``."""

    def _make(name: str = "app.jar", entries: Iterable[EntrySpec] = (), *, comment: bytes = b"") -> Path:
        return write_archive(tmp_path / name, entries, comment=comment)

    return _make


@pytest.fixture
def payloads() -> dict[str, bytes]:
    """Return the override set used by most scenarios."""
    return {"a/test.txt": b"HELLO"}


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


@pytest.fixture
def entries_of() -> Callable[[Path], dict[str, bytes]]:
    return read_entries


@pytest.fixture
def raw_entry_of() -> Callable[[Path, zipfile.ZipInfo], bytes]:
    return read_raw_entry
