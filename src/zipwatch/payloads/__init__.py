"""Payload loading for archive entry injection."""

from .loader import build_payload_set, default_payloads, load_payload_files, parse_payload_arg, validate_entry_name

__all__ = [
    "build_payload_set",
    "default_payloads",
    "load_payload_files",
    "parse_payload_arg",
    "validate_entry_name",
]
