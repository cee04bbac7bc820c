"""Command-line entry point for the GitHub Archive loader.

Usage: github-archive [DATE [HOUR]]

DATE is YYYY-MM-DD (default: yesterday, UTC) and HOUR is 0-23
(default: 0). Arguments are validated before any network activity.
"""

import argparse
import logging
import re
from collections.abc import Sequence
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from github_archive.config import ArchiveConfig, GHArchiveConfig, StoreConfig
from github_archive.errors import ArchiveError, ArgumentError
from github_archive.pipeline import DataPipeline

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    parser = argparse.ArgumentParser(
        prog="github-archive",
        description="Load one hourly GH Archive snapshot into SQLite.",
    )
    parser.add_argument("date", nargs="?", help="Snapshot date, YYYY-MM-DD")
    parser.add_argument("hour", nargs="?", help="Snapshot hour, 0-23")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory for downloaded and decompressed files",
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=None,
        help="SQLite database file to rebuild",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows per insert transaction",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser


def parse_snapshot(
    date_arg: str | None,
    hour_arg: str | None,
    today: date | None = None,
) -> tuple[date, int]:
    """Validate the snapshot date and hour.

    Args:
        date_arg: Date string, or None for yesterday (UTC).
        hour_arg: Hour string, or None for hour 0.
        today: Reference date for the default (defaults to today, UTC).

    Returns:
        tuple: (snapshot date, hour).

    Raises:
        ArgumentError: If the date or hour is malformed or out of range.
    """
    if date_arg is None:
        if today is None:
            today = datetime.now(timezone.utc).date()
        snapshot_date = today - timedelta(days=1)
    else:
        if not DATE_PATTERN.match(date_arg):
            raise ArgumentError(
                f"Invalid date format: {date_arg}. Expected YYYY-MM-DD"
            )
        try:
            snapshot_date = date.fromisoformat(date_arg)
        except ValueError as e:
            raise ArgumentError(f"Invalid date: {date_arg}. {e}") from e

    if hour_arg is None:
        return snapshot_date, 0
    try:
        hour = int(hour_arg)
    except ValueError:
        raise ArgumentError(f"Invalid hour: {hour_arg}. Expected 0-23") from None
    if not 0 <= hour <= 23:
        raise ArgumentError(f"Invalid hour: {hour_arg}. Expected 0-23")
    return snapshot_date, hour


def build_config(args: argparse.Namespace) -> ArchiveConfig:
    """Apply command-line overrides to the default configuration.

    Raises:
        ArgumentError: If an override fails validation.
    """
    gh_archive_overrides = {}
    if args.data_dir is not None:
        gh_archive_overrides["data_dir"] = args.data_dir
    store_overrides = {}
    if args.database is not None:
        store_overrides["database_path"] = args.database
    if args.batch_size is not None:
        store_overrides["batch_size"] = args.batch_size
    try:
        return ArchiveConfig(
            gh_archive=GHArchiveConfig(**gh_archive_overrides),
            store=StoreConfig(**store_overrides),
        )
    except ValidationError as e:
        raise ArgumentError(f"Invalid option: {e}") from e


def main(argv: Sequence[str] | None = None) -> int:
    """Run the loader.

    Args:
        argv: Optional argument vector.

    Returns:
        int: Process exit code (0 on success, 1 on a fatal error).
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        snapshot_date, hour = parse_snapshot(args.date, args.hour)
        config = build_config(args)
        DataPipeline(config).run(snapshot_date, hour)
    except ArchiveError as e:
        logger.error(f"Fatal error: {e}")
        return 1

    logger.info(f"Done! Data is in {config.store.database_path}")
    return 0
