"""Command-line surface for dir-mon."""
from __future__ import annotations

import argparse
from typing import NoReturn, Optional, Sequence

from dirmon.config import DEFAULT_FILE_COUNT, DEFAULT_SIZE_MB, RawOptions
from dirmon.errors import InvalidArgument

BANNER = r"""
    ____  ________        __  _______  _   __
   / __ \/  _/ __ \      /  |/  / __ \/ | / /
  / / / // // /_/ /_____/ /|_/ / / / /  |/ /
 / /_/ // // _, _/_____/ /  / / /_/ / /|  /
/_____/___/_/ |_|     /_/  /_/\____/_/ |_/
"""

EPILOG = """
Examples:
  dir-mon -d /path/to/dir -S 1 -f 2 -t 30
  dir-mon -d /path/to/dir -s 500 -f 3
  dir-mon -d /path/to/dir -s 500 -f 3 --dry-run
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Report bad usage as InvalidArgument instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise InvalidArgument("", message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="dir-mon",
        description="Ensure only a given number of large files remain in a directory.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-d", "--directory", metavar="DIR", help="Target directory to monitor. (required)"
    )
    parser.add_argument(
        "-s",
        "--size-in-mb",
        metavar="SIZE_MB",
        help=f"File size threshold in MB. (default: {DEFAULT_SIZE_MB})",
    )
    parser.add_argument(
        "-S", "--size-in-gb", metavar="SIZE_GB", help="File size threshold in GB."
    )
    parser.add_argument(
        "-f",
        "--file-count",
        metavar="FILE_COUNT",
        help=f"Maximum number of large files to keep. (default: {DEFAULT_FILE_COUNT})",
    )
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Report the files that would be deleted without deleting them.",
    )
    parser.add_argument(
        "-t",
        "--time",
        metavar="MINUTES",
        help="Monitor duration in minutes. (default: 0, run until stopped)",
    )
    parser.add_argument("--config", metavar="PATH", help="YAML settings file.")
    parser.add_argument("--log-dir", metavar="DIR", help="Directory for log files.")
    parser.add_argument(
        "--no-banner", action="store_true", help="Do not print the start-up banner."
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def options_from_args(args: argparse.Namespace) -> RawOptions:
    return RawOptions(
        directory=args.directory,
        size_in_mb=args.size_in_mb,
        size_in_gb=args.size_in_gb,
        file_count=args.file_count,
        dry_run=args.dry_run,
        time=args.time,
    )
