"""Data pipeline for one GH Archive snapshot.

This module runs one snapshot through every stage in order: download,
decompress, rebuild the store, load and report.
"""

import logging
from datetime import date, datetime, timezone

from github_archive.config import ArchiveConfig
from github_archive.errors import StoreError
from github_archive.ingestion.decompressor import decompress
from github_archive.ingestion.downloader import ArchiveFile, GHArchiveDownloader
from github_archive.ingestion.line_parser import iter_lines
from github_archive.loading.batch_loader import BatchLoader, LoadResult
from github_archive.store.initializer import ArchiveStore, initialize_store
from github_archive.store.inserts import compile_inserts
from github_archive.summary import SummaryReporter, format_megabytes

logger = logging.getLogger(__name__)


class DataPipeline:
    """Loads one hourly snapshot into a freshly built SQLite store.

    Stages run strictly one after another; any ArchiveError raised by a
    stage aborts the run.

    Attributes:
        config: Loader configuration.
        downloader: Downloader used for missing snapshots.
        reporter: Progress and summary reporter.
    """

    def __init__(
        self,
        config: ArchiveConfig | None = None,
        downloader: GHArchiveDownloader | None = None,
        reporter: SummaryReporter | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Loader configuration (defaults if None).
            downloader: Downloader (built from config if None).
            reporter: Reporter (a SummaryReporter if None).
        """
        self.config = config or ArchiveConfig()
        self.downloader = downloader or GHArchiveDownloader(self.config.gh_archive)
        self.reporter = reporter or SummaryReporter()

    def fetch(self, archive: ArchiveFile) -> ArchiveFile:
        """Download the snapshot unless it is already on disk.

        Args:
            archive: Snapshot to fetch.

        Returns:
            ArchiveFile: Updated with local_path and size_bytes.

        Raises:
            DownloadError: If the download fails.
        """
        local_path = self.config.gh_archive.data_dir / archive.filename
        if local_path.exists():
            archive.local_path = local_path
            archive.size_bytes = local_path.stat().st_size
            logger.info(f"Using cached {archive.filename}")
            return archive
        return self.downloader.download_to_path(archive)

    def decompress(self, archive: ArchiveFile) -> ArchiveFile:
        """Decompress the snapshot unless the plain file is already on disk.

        Args:
            archive: Fetched snapshot.

        Returns:
            ArchiveFile: Updated with json_path.

        Raises:
            DecompressionError: If the compressed file is corrupt.
        """
        json_path = self.config.gh_archive.data_dir / f"{archive.stem}.json"
        if json_path.exists():
            logger.info(f"Using cached {json_path.name}")
        else:
            logger.info(f"Decompressing to {json_path.name} ...")
            decompress(archive.local_path, json_path, self.config.gh_archive.chunk_size)
        archive.json_path = json_path
        return archive

    def load(self, archive: ArchiveFile) -> LoadResult:
        """Rebuild the store and load every record of the snapshot into it.

        Args:
            archive: Decompressed snapshot.

        Returns:
            LoadResult: Counts for the load.

        Raises:
            StoreError: If the store cannot be built or a batch fails.
        """
        store_config = self.config.store
        logger.info(f"Creating {store_config.database_path} ...")
        store = initialize_store(store_config)
        try:
            inserts = compile_inserts(store.tables)
            logger.info(f"Loading events from {archive.json_path.name} ...")
            with store.engine.connect() as conn:
                loader = BatchLoader(
                    conn,
                    inserts,
                    batch_size=store_config.batch_size,
                    on_flush=self.reporter.progress,
                )
                loader.accept_all(
                    iter_lines(archive.json_path, self.config.gh_archive.chunk_size)
                )
                result = loader.finish()
            stored_rows = self._stored_rows(store)
        finally:
            store.close()

        self.reporter.report(
            result,
            store_path=store.path,
            table_count=len(store.tables),
            stored_rows=stored_rows,
        )
        return result

    def _stored_rows(self, store: ArchiveStore) -> int | None:
        """Count stored rows for the report, or None if counting fails."""
        try:
            return sum(store.row_counts().values())
        except StoreError as e:
            logger.warning(f"Could not count stored rows: {e}")
            return None

    def run(self, archive_date: date, hour: int) -> LoadResult:
        """Run the complete pipeline for one snapshot.

        Args:
            archive_date: Date of the snapshot.
            hour: Hour of the snapshot (0-23).

        Returns:
            LoadResult: Counts for the loaded snapshot.

        Raises:
            ArchiveError: If any stage fails.
        """
        start_time = datetime.now(timezone.utc)
        logger.info(f"Starting data pipeline run at {start_time}")

        archive = self.downloader.archive_for(archive_date, hour)
        self.config.gh_archive.data_dir.mkdir(parents=True, exist_ok=True)

        archive = self.fetch(archive)
        logger.info(f"Snapshot {archive.filename}: {format_megabytes(archive.size_bytes)}")
        archive = self.decompress(archive)
        result = self.load(archive)

        end_time = datetime.now(timezone.utc)
        duration = (end_time - start_time).total_seconds()
        logger.info(f"Data pipeline run completed in {duration:.2f} seconds")
        return result
