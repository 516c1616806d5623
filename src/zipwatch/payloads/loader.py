"""Build the read-only payload set injected into every patched archive."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

from zipwatch.constants.payloads import (
    DEFAULT_PAYLOAD_ENTRIES,
    DEFAULT_PAYLOAD_RESOURCE,
    PAYLOAD_ARG_SEPARATOR,
)
from zipwatch.exceptions import ConfigError
from zipwatch.types import PayloadSet

logger = logging.getLogger(__name__)

RESOURCES_DIR: Path = Path(__file__).parent.parent / "resources"


def validate_entry_name(name: str) -> str:
    """Return *name* if it is usable as an archive entry name."""
    if not name or not name.strip():
        raise ConfigError("Payload entry name must not be empty")
    if name.startswith("/") or "\\" in name:
        raise ConfigError(f"Payload entry name must be a relative '/'-separated path: {name!r}")
    if name.endswith("/"):
        raise ConfigError(f"Payload entry name must name a file, not a directory: {name!r}")
    return name


def build_payload_set(payloads: Mapping[str, bytes]) -> PayloadSet:
    """Freeze *payloads* into an immutable mapping after validating names."""
    frozen: dict[str, bytes] = {}
    for name, content in payloads.items():
        frozen[validate_entry_name(name)] = bytes(content)
    return MappingProxyType(frozen)


def load_payload_files(files: Mapping[str, Path]) -> PayloadSet:
    """Read each payload file and key its bytes by archive entry name."""
    contents: dict[str, bytes] = {}
    for name, path in files.items():
        try:
            contents[name] = path.read_bytes()
        except OSError as exc:
            raise ConfigError(f"Cannot read payload file for {name!r}: {path} ({exc})") from exc
        logger.debug("Loaded payload %s from %s (%d bytes)", name, path, len(contents[name]))
    return build_payload_set(contents)


def default_payloads() -> PayloadSet:
    """Return the bundled payload injected under the default entry names."""
    content = (RESOURCES_DIR / DEFAULT_PAYLOAD_RESOURCE).read_bytes()
    return build_payload_set(dict.fromkeys(DEFAULT_PAYLOAD_ENTRIES, content))


def parse_payload_arg(value: str) -> tuple[str, Path]:
    """Parse a ``NAME=FILE`` command-line payload specification."""
    name, separator, file_path = value.partition(PAYLOAD_ARG_SEPARATOR)
    if not separator or not file_path:
        raise ConfigError(f"Payload must be given as NAME{PAYLOAD_ARG_SEPARATOR}FILE, got {value!r}")
    return validate_entry_name(name.strip()), Path(file_path).expanduser()
