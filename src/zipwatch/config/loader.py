"""Config loading and normalization for the watch service."""

from __future__ import annotations

import difflib
from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from zipwatch.config.model import WatchConfig
from zipwatch.constants.archive import DEFAULT_ARCHIVE_EXTENSIONS
from zipwatch.constants.config import (
    ALLOWED_CONFIG_KEYS,
    CONFIG_FILENAME,
    DEFAULT_LOG_LEVEL,
    VALID_LOG_LEVELS,
)
from zipwatch.exceptions import ConfigError
from zipwatch.payloads import validate_entry_name


def load_config(config_path: Path | None = None, *, search_dir: Path | None = None) -> WatchConfig:
    """Load and validate config from ``zipwatch.yaml`` or an explicit path.

    Relative ``roots`` and ``payloads`` paths resolve against the directory
    holding the config file.
    """
    base_dir = (search_dir or Path.cwd()).resolve()
    path = config_path.resolve() if config_path else (base_dir / CONFIG_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return WatchConfig()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read config file at {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")

    unknown = sorted(str(key) for key in raw if key not in ALLOWED_CONFIG_KEYS)
    if unknown:
        hint = _suggest_key(unknown[0])
        raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}" + (f" ({hint})" if hint else ""))

    config_dir = path.parent

    recursive = raw.get("recursive", False)
    if not isinstance(recursive, bool):
        raise ConfigError("recursive must be a boolean")

    log_level = raw.get("log_level", DEFAULT_LOG_LEVEL)
    if not isinstance(log_level, str) or log_level.upper() not in VALID_LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got {log_level!r}")

    roots = tuple(
        str(_resolve_relative(Path(root), config_dir)) for root in _ensure_string_list(raw.get("roots"), "roots")
    )

    extensions_raw = raw.get("extensions")
    extensions = (
        DEFAULT_ARCHIVE_EXTENSIONS
        if extensions_raw is None
        else tuple(normalize_extension(ext) for ext in _ensure_string_list(extensions_raw, "extensions"))
    )
    if not extensions:
        raise ConfigError("extensions must not be empty")

    return WatchConfig(
        roots=roots,
        recursive=recursive,
        extensions=extensions,
        payloads=_build_payload_entries(raw.get("payloads"), config_dir),
        max_workers=_optional_positive_int(raw.get("max_workers"), "max_workers"),
        suppression_max_entries=_optional_positive_int(
            raw.get("suppression_max_entries"),
            "suppression_max_entries",
        ),
        log_level=log_level.upper(),
    )


def apply_overrides(
    config: WatchConfig,
    *,
    paths: Sequence[str] = (),
    recursive: bool = False,
    payloads: Mapping[str, Path] | None = None,
    extensions: Sequence[str] | None = None,
    max_workers: int | None = None,
) -> WatchConfig:
    """Layer command-line values over a loaded config.

    CLI paths extend the configured roots, ``recursive`` can only switch
    recursion on, and payloads or extensions given on the command line
    replace the configured ones.
    """
    updated = config
    if paths:
        updated = replace(updated, roots=(*updated.roots, *paths))
    if recursive:
        updated = replace(updated, recursive=True)
    if payloads:
        updated = replace(updated, payloads=tuple(payloads.items()))
    if extensions:
        updated = replace(updated, extensions=tuple(normalize_extension(ext) for ext in extensions))
    if max_workers is not None:
        updated = replace(updated, max_workers=_optional_positive_int(max_workers, "max_workers"))
    return updated


def normalize_extension(raw: str) -> str:
    """Return *raw* as a ``.ext`` suffix, rejecting empty values."""
    value = raw.strip()
    if not value or value == ".":
        raise ConfigError(f"Invalid archive extension: {raw!r}")
    return value if value.startswith(".") else f".{value}"


def _ensure_string_list(value: Any, key_name: str) -> list[str]:
    """Coerce a value to a list of strings, raising ConfigError on type mismatch."""
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"{key_name} must be a list of strings")
    return list(value)


def _optional_positive_int(value: Any, key_name: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{key_name} must be a positive integer")
    return value


def _build_payload_entries(raw: Any, config_dir: Path) -> tuple[tuple[str, Path], ...]:
    """Validate the ``payloads`` mapping of entry name to payload file path."""
    if raw is None:
        return ()
    if not isinstance(raw, dict):
        raise ConfigError("payloads must be a mapping of archive entry name to file path")

    entries: list[tuple[str, Path]] = []
    for name, file_path in raw.items():
        if not isinstance(name, str) or not isinstance(file_path, str):
            raise ConfigError("payloads keys and values must be strings")
        validate_entry_name(name)
        entries.append((name, _resolve_relative(Path(file_path), config_dir)))
    return tuple(entries)


def _resolve_relative(path: Path, base_dir: Path) -> Path:
    path = path.expanduser()
    return path if path.is_absolute() else base_dir / path


def _suggest_key(unknown: str) -> str:
    """Return a 'did you mean ...' hint for a close key match, or empty string."""
    matches = difflib.get_close_matches(unknown, sorted(ALLOWED_CONFIG_KEYS), n=1, cutoff=0.6)
    if matches:
        return f"did you mean `{matches[0]}`?"
    return ""
