"""CLI entrypoint for the Zipwatch archive watcher."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from zipwatch import __version__
from zipwatch.cli.handlers import handle_patch, handle_watch
from zipwatch.constants.branding import CLI_DESCRIPTION

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def build_parser() -> argparse.ArgumentParser:
    """Build top-level CLI parser."""
    parser = argparse.ArgumentParser(
        prog="zipwatch",
        description=CLI_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="Watch directories and patch archives as they are written")
    watch.add_argument("paths", nargs="*", help="Directories to watch (added to configured roots)")
    watch.add_argument(
        "-r",
        "--recurse",
        action="store_true",
        help="Recursively add watches to all subdirectories",
    )
    _add_common_arguments(watch)
    watch.add_argument(
        "-e",
        "--ext",
        action="append",
        default=None,
        help="Archive extension to patch (repeat for multiple values, default: .zip and .jar)",
    )
    watch.add_argument("-w", "--workers", type=int, default=None, help="Maximum concurrent patch operations")

    patch = subparsers.add_parser("patch", help="Patch archives once and exit")
    patch.add_argument("archives", nargs="+", type=Path, help="Archive files to patch")
    _add_common_arguments(patch)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config", type=Path, help="Explicit config file")
    parser.add_argument(
        "-p",
        "--payload",
        action="append",
        default=[],
        metavar="NAME=FILE",
        help="Inject FILE as archive entry NAME (repeat for multiple entries)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)

    if args.command == "watch":
        return handle_watch(args)
    if args.command == "patch":
        return handle_patch(args)

    parser.error(f"Unsupported command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
