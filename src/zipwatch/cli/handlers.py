"""CLI subcommand handlers and process signal wiring."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from types import FrameType

from zipwatch.archive import patch_archive
from zipwatch.config import WatchConfig, apply_overrides, load_config
from zipwatch.exceptions import ConfigError, PatchError, WatchRegistrationError
from zipwatch.payloads import default_payloads, load_payload_files, parse_payload_arg
from zipwatch.types import PayloadSet
from zipwatch.watcher.service import WatchService

logger = logging.getLogger(__name__)


def handle_watch(args: argparse.Namespace) -> int:
    """Run the watch service until interrupted."""
    try:
        config = apply_overrides(
            load_config(args.config),
            paths=tuple(args.paths),
            recursive=args.recurse,
            payloads=dict(parse_payload_arg(value) for value in args.payload),
            extensions=args.ext,
            max_workers=args.workers,
        )
        payloads = resolve_payloads(config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    _apply_log_level(args, config)

    service = WatchService(config, payloads)
    try:
        install_signal_handlers(service)
        service.start()
        service.wait()
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    except WatchRegistrationError as exc:
        print(f"Watch error: {exc}", file=sys.stderr)
        return 1
    finally:
        service.stop()

    return 0


def handle_patch(args: argparse.Namespace) -> int:
    """Patch each archive given on the command line once."""
    try:
        config = apply_overrides(
            load_config(args.config),
            payloads=dict(parse_payload_arg(value) for value in args.payload),
        )
        payloads = resolve_payloads(config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    _apply_log_level(args, config)

    failures = 0
    for archive in args.archives:
        try:
            patch_archive(archive, payloads)
        except PatchError as exc:
            print(f"Patch error: {exc}", file=sys.stderr)
            failures += 1
    return 1 if failures else 0


def resolve_payloads(config: WatchConfig) -> PayloadSet:
    """Load configured payload files, falling back to the bundled payload."""
    if config.payloads:
        return load_payload_files(config.payload_files)
    return default_payloads()


def install_signal_handlers(service: WatchService) -> None:
    """Route SIGUSR1 to a suppression reset and SIGINT/SIGTERM to shutdown."""

    def _reset(signum: int, frame: FrameType | None) -> None:
        logger.info("Received SIGUSR1, clearing the ignored files cache")
        service.reset_suppression()

    def _stop(signum: int, frame: FrameType | None) -> None:
        logger.info("Received %s, shutting down", signal.Signals(signum).name)
        service.request_stop()

    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, _reset)
    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)


def _apply_log_level(args: argparse.Namespace, config: WatchConfig) -> None:
    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)
