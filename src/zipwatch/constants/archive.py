"""Constants for archive discovery and the ZIP rewrite engine."""

from __future__ import annotations

import stat
import zipfile

DEFAULT_ARCHIVE_EXTENSIONS: tuple[str, ...] = (".zip", ".jar")

# Work-in-progress rewrites live next to the archive as ``.<name>.swp``.
TEMP_PREFIX: str = "."
TEMP_SUFFIX: str = ".swp"

COPY_CHUNK_SIZE: int = 65536

# Appended entries carry a fixed timestamp so repeated patches are byte-identical.
APPENDED_ENTRY_DATE_TIME: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
APPENDED_ENTRY_EXTERNAL_ATTR: int = (stat.S_IFREG | 0o644) << 16
APPENDED_ENTRY_COMPRESSION: int = zipfile.ZIP_DEFLATED

# ZIP record layouts (APPNOTE 4.3).
LOCAL_HEADER_SIGNATURE: bytes = b"PK\x03\x04"
CENTRAL_HEADER_SIGNATURE: bytes = b"PK\x01\x02"
END_OF_CENTRAL_DIR_SIGNATURE: bytes = b"PK\x05\x06"
DATA_DESCRIPTOR_SIGNATURE: bytes = b"PK\x07\x08"
LOCAL_HEADER_FORMAT: str = "<4s5H3L2H"
CENTRAL_HEADER_FORMAT: str = "<4s4B4HL2L5H2L"
END_OF_CENTRAL_DIR_FORMAT: str = "<4s4H2LH"
DATA_DESCRIPTOR_FORMAT: str = "<4s3L"

FLAG_DATA_DESCRIPTOR: int = 0x0008
FLAG_UTF8_NAME: int = 0x0800
ZIP64_EXTRA_ID: int = 0x0001

VERSION_STORED: int = 10
VERSION_DEFLATED: int = 20

ZIP32_MAX_VALUE: int = 0xFFFFFFFF
ZIP32_MAX_ENTRIES: int = 0xFFFF
