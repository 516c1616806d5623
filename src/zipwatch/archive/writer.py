"""Minimal ZIP writer that can copy entries without recompressing them.

``zipfile.ZipFile`` only writes members it compresses itself, so copying an
entry "as is" (original compressed bytes, local header, extra fields) needs
direct control over the container layout. This writer emits local headers,
the central directory and the end-of-central-directory record with
``struct``. Archives that would need zip64 records are rejected.
"""

from __future__ import annotations

import logging
import struct
import zipfile
import zlib
from dataclasses import dataclass
from types import TracebackType
from typing import BinaryIO

from zipwatch.constants.archive import (
    CENTRAL_HEADER_FORMAT,
    CENTRAL_HEADER_SIGNATURE,
    COPY_CHUNK_SIZE,
    DATA_DESCRIPTOR_FORMAT,
    DATA_DESCRIPTOR_SIGNATURE,
    END_OF_CENTRAL_DIR_FORMAT,
    END_OF_CENTRAL_DIR_SIGNATURE,
    FLAG_DATA_DESCRIPTOR,
    FLAG_UTF8_NAME,
    LOCAL_HEADER_FORMAT,
    LOCAL_HEADER_SIGNATURE,
    VERSION_DEFLATED,
    VERSION_STORED,
    ZIP32_MAX_ENTRIES,
    ZIP32_MAX_VALUE,
    ZIP64_EXTRA_ID,
)
from zipwatch.exceptions import ArchiveIOError

logger = logging.getLogger(__name__)

_LOCAL_HEADER = struct.Struct(LOCAL_HEADER_FORMAT)
_CENTRAL_HEADER = struct.Struct(CENTRAL_HEADER_FORMAT)
_END_RECORD = struct.Struct(END_OF_CENTRAL_DIR_FORMAT)
_DATA_DESCRIPTOR = struct.Struct(DATA_DESCRIPTOR_FORMAT)
_EXTRA_HEADER = struct.Struct("<2H")

_LOCAL_NAME_LENGTH_INDEX = 9
_LOCAL_EXTRA_LENGTH_INDEX = 10


@dataclass(frozen=True)
class _CentralRecord:
    """Central directory fields for one written entry."""

    name: bytes
    extra: bytes
    comment: bytes
    create_version: int
    create_system: int
    extract_version: int
    flag_bits: int
    compress_type: int
    date_time: tuple[int, int, int, int, int, int]
    crc: int
    compress_size: int
    file_size: int
    internal_attr: int
    external_attr: int
    header_offset: int


class ArchiveWriter:
    """Write a ZIP archive entry by entry into an open binary file.

    Copied entries keep their local header and compressed bytes unchanged.
    Written entries are compressed here, reusing the metadata of the
    ``ZipInfo`` they are given. Nothing is readable as an archive until
    :meth:`close` emits the central directory.
    """

    def __init__(self, fileobj: BinaryIO) -> None:
        self._fp = fileobj
        self._records: list[_CentralRecord] = []
        self._closed = False

    def __enter__(self) -> ArchiveWriter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.close()

    @property
    def entry_count(self) -> int:
        """Number of entries written so far."""
        return len(self._records)

    def copy_entry(self, info: zipfile.ZipInfo, source: BinaryIO) -> None:
        """Copy *info* from *source* byte-for-byte, including compression metadata."""
        offset = self._fp.tell()
        local_header, name = _read_local_header(info, source)
        self._fp.write(local_header)
        _copy_exact(source, self._fp, info.compress_size, info.filename)
        if info.flag_bits & FLAG_DATA_DESCRIPTOR:
            self._fp.write(
                _DATA_DESCRIPTOR.pack(DATA_DESCRIPTOR_SIGNATURE, info.CRC, info.compress_size, info.file_size)
            )

        self._add_record(
            _CentralRecord(
                name=name,
                extra=strip_zip64_extra(info.extra),
                comment=info.comment,
                create_version=info.create_version,
                create_system=info.create_system,
                extract_version=info.extract_version,
                flag_bits=info.flag_bits,
                compress_type=info.compress_type,
                date_time=info.date_time,
                crc=info.CRC,
                compress_size=info.compress_size,
                file_size=info.file_size,
                internal_attr=info.internal_attr,
                external_attr=info.external_attr,
                header_offset=offset,
            )
        )

    def write_entry(self, info: zipfile.ZipInfo, data: bytes) -> None:
        """Write *data* as a new entry carrying the metadata of *info*.

        Stored and deflated entries keep their compression method; any other
        method is written deflated.
        """
        method = info.compress_type
        if method not in (zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED):
            logger.debug("Compression method %d not writable for %s, deflating instead", method, info.filename)
            method = zipfile.ZIP_DEFLATED
        body = data if method == zipfile.ZIP_STORED else _deflate(data)

        name, flag_bits = encode_entry_name(info.orig_filename, info.flag_bits & FLAG_UTF8_NAME)
        extra = strip_zip64_extra(info.extra)
        extract_version = max(
            info.extract_version,
            VERSION_DEFLATED if method == zipfile.ZIP_DEFLATED else VERSION_STORED,
        )
        crc = zlib.crc32(data)
        dos_time, dos_date = _dos_timestamp(info.date_time)

        offset = self._fp.tell()
        record = _CentralRecord(
            name=name,
            extra=extra,
            comment=info.comment,
            create_version=info.create_version,
            create_system=info.create_system,
            extract_version=extract_version,
            flag_bits=flag_bits,
            compress_type=method,
            date_time=info.date_time,
            crc=crc,
            compress_size=len(body),
            file_size=len(data),
            internal_attr=info.internal_attr,
            external_attr=info.external_attr,
            header_offset=offset,
        )
        _require_zip32(record)

        self._fp.write(
            _LOCAL_HEADER.pack(
                LOCAL_HEADER_SIGNATURE,
                extract_version,
                flag_bits,
                method,
                dos_time,
                dos_date,
                crc,
                len(body),
                len(data),
                len(name),
                len(extra),
            )
        )
        self._fp.write(name)
        self._fp.write(extra)
        self._fp.write(body)
        self._records.append(record)

    def close(self, comment: bytes = b"") -> None:
        """Write the central directory and end record. Safe to call twice."""
        if self._closed:
            return

        directory_offset = self._fp.tell()
        if directory_offset >= ZIP32_MAX_VALUE or len(self._records) >= ZIP32_MAX_ENTRIES:
            raise ArchiveIOError("Rewritten archive requires zip64 records, which are not supported")

        for record in self._records:
            dos_time, dos_date = _dos_timestamp(record.date_time)
            self._fp.write(
                _CENTRAL_HEADER.pack(
                    CENTRAL_HEADER_SIGNATURE,
                    record.create_version,
                    record.create_system,
                    record.extract_version,
                    0,
                    record.flag_bits,
                    record.compress_type,
                    dos_time,
                    dos_date,
                    record.crc,
                    record.compress_size,
                    record.file_size,
                    len(record.name),
                    len(record.extra),
                    len(record.comment),
                    0,
                    record.internal_attr,
                    record.external_attr,
                    record.header_offset,
                )
            )
            self._fp.write(record.name)
            self._fp.write(record.extra)
            self._fp.write(record.comment)

        directory_size = self._fp.tell() - directory_offset
        if directory_size >= ZIP32_MAX_VALUE:
            raise ArchiveIOError("Rewritten archive requires zip64 records, which are not supported")

        comment = comment[:0xFFFF]
        self._fp.write(
            _END_RECORD.pack(
                END_OF_CENTRAL_DIR_SIGNATURE,
                0,
                0,
                len(self._records),
                len(self._records),
                directory_size,
                directory_offset,
                len(comment),
            )
        )
        self._fp.write(comment)
        self._fp.flush()
        self._closed = True

    def _add_record(self, record: _CentralRecord) -> None:
        _require_zip32(record)
        self._records.append(record)


def encode_entry_name(name: str, flag_bits: int = 0) -> tuple[bytes, int]:
    """Encode an entry name, returning the bytes and the updated flag bits.

    Names without the UTF-8 flag were decoded as CP437 when read, so encoding
    them back as CP437 reproduces the original bytes.
    """
    if flag_bits & FLAG_UTF8_NAME:
        return name.encode("utf-8"), flag_bits
    try:
        return name.encode("cp437"), flag_bits
    except UnicodeEncodeError:
        return name.encode("utf-8"), flag_bits | FLAG_UTF8_NAME


def strip_zip64_extra(extra: bytes) -> bytes:
    """Drop zip64 extended information records from an extra field block."""
    kept: list[bytes] = []
    index = 0
    while index + _EXTRA_HEADER.size <= len(extra):
        header_id, size = _EXTRA_HEADER.unpack_from(extra, index)
        end = index + _EXTRA_HEADER.size + size
        if header_id != ZIP64_EXTRA_ID:
            kept.append(extra[index:end])
        index = end
    if index < len(extra):
        kept.append(extra[index:])
    return b"".join(kept)


def _read_local_header(info: zipfile.ZipInfo, source: BinaryIO) -> tuple[bytes, bytes]:
    """Return the full local header of *info* and its raw name bytes.

    Leaves *source* positioned at the first byte of entry data.
    """
    source.seek(info.header_offset)
    fixed = source.read(_LOCAL_HEADER.size)
    if len(fixed) != _LOCAL_HEADER.size:
        raise ArchiveIOError(f"Truncated local header for entry {info.filename!r}")

    fields = _LOCAL_HEADER.unpack(fixed)
    if fields[0] != LOCAL_HEADER_SIGNATURE:
        raise ArchiveIOError(f"Bad local header signature for entry {info.filename!r}")

    name_length = fields[_LOCAL_NAME_LENGTH_INDEX]
    extra_length = fields[_LOCAL_EXTRA_LENGTH_INDEX]
    tail = source.read(name_length + extra_length)
    if len(tail) != name_length + extra_length:
        raise ArchiveIOError(f"Truncated local header for entry {info.filename!r}")
    return fixed + tail, tail[:name_length]


def _copy_exact(source: BinaryIO, target: BinaryIO, size: int, name: str) -> None:
    remaining = size
    while remaining:
        chunk = source.read(min(COPY_CHUNK_SIZE, remaining))
        if not chunk:
            raise ArchiveIOError(f"Truncated data for entry {name!r}")
        target.write(chunk)
        remaining -= len(chunk)


def _deflate(data: bytes) -> bytes:
    compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


def _dos_timestamp(date_time: tuple[int, int, int, int, int, int]) -> tuple[int, int]:
    year, month, day, hour, minute, second = date_time
    dos_date = ((year - 1980) << 9) | (month << 5) | day
    dos_time = (hour << 11) | (minute << 5) | (second // 2)
    return dos_time, dos_date


def _require_zip32(record: _CentralRecord) -> None:
    if max(record.header_offset, record.compress_size, record.file_size) >= ZIP32_MAX_VALUE:
        raise ArchiveIOError(
            f"Entry {record.name.decode('utf-8', 'replace')!r} requires zip64 records, which are not supported"
        )
