"""Progress and end-of-run reporting.

Reporting is observational only; nothing here may fail a run.
"""

import logging
from pathlib import Path

from github_archive.loading.batch_loader import LoadResult

logger = logging.getLogger(__name__)


def format_megabytes(size_bytes: int) -> str:
    """Format a byte count as megabytes.

    Args:
        size_bytes: Size in bytes.

    Returns:
        str: Size with one decimal, e.g. ``"1.5 MB"``.
    """
    return f"{size_bytes / 1024 / 1024:.1f} MB"


class SummaryReporter:
    """Reports loader progress and the end-of-run summary.

    Logs a running total on every batch flush and a per-type breakdown
    at the end of the run.
    """

    def progress(self, total: int) -> None:
        """Log the running total after a batch flush.

        Args:
            total: Rows accepted so far.
        """
        logger.info(f"Loaded {total:,} events...")

    def report(
        self,
        result: LoadResult,
        store_path: Path,
        table_count: int,
        stored_rows: int | None = None,
    ) -> None:
        """Log the final breakdown for a run.

        Args:
            result: Load result from the batch loader.
            store_path: Database file whose size is reported.
            table_count: Number of event tables in the store.
            stored_rows: Rows present in the store after id dedup, if known.
        """
        logger.info(f"Loaded {result.rows_accepted:,} events.")
        logger.info("Event types:")
        for event_type, count in result.sorted_type_counts():
            logger.info(f"  {event_type}: {count:,}")

        logger.info(f"Total events: {result.rows_accepted:,}")
        if stored_rows is not None:
            logger.info(f"Rows stored: {stored_rows:,}")
        if result.records_failed:
            logger.warning(f"Skipped {result.records_failed:,} undecodable lines")
        if result.records_dropped:
            logger.info(
                f"Dropped {result.records_dropped:,} events of "
                f"{len(result.unknown_types)} unregistered types"
            )

        try:
            size = store_path.stat().st_size
        except OSError as e:
            logger.warning(f"Could not read database size for {store_path}: {e}")
        else:
            logger.info(f"Database size: {format_megabytes(size)}")
        logger.info(f"Tables: {table_count}")
        logger.info(f"Load completed in {result.duration_seconds:.2f} seconds")
