"""GH Archive file downloader.

This module provides utilities for downloading GitHub Archive
hourly data files from https://www.gharchive.org/
"""

import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from github_archive.config import GHArchiveConfig
from github_archive.errors import HTTPStatusError, NetworkError, RedirectLoopError

logger = logging.getLogger(__name__)

REDIRECT_STATUSES = frozenset({301, 302, 303, 307, 308})


@dataclass
class ArchiveFile:
    """Represents one hourly GH Archive snapshot.

    Attributes:
        archive_date: Date of the archive.
        hour: Hour of the archive (0-23).
        filename: Name of the compressed archive file.
        url: URL the file is downloaded from.
        local_path: Local compressed file path (if downloaded).
        json_path: Local decompressed file path (if decompressed).
        size_bytes: Size of compressed file in bytes.
    """

    archive_date: date
    hour: int
    filename: str
    url: str
    local_path: Path | None = None
    json_path: Path | None = None
    size_bytes: int = 0

    @property
    def datetime_hour(self) -> datetime:
        """Get datetime for this archive hour.

        Returns:
            datetime: Archive datetime (UTC).
        """
        return datetime(
            self.archive_date.year,
            self.archive_date.month,
            self.archive_date.day,
            self.hour,
        )

    @property
    def stem(self) -> str:
        """Get the snapshot name without extensions, e.g. ``2024-01-15-10``."""
        return self.filename.removesuffix(".json.gz")


class GHArchiveDownloader:
    """Downloads GH Archive hourly data files to local storage.

    Response bodies are streamed straight to disk; redirects are followed
    by hand so the hop limit is enforced here rather than inside requests.

    Attributes:
        config: GH Archive configuration.
        session: Requests session with retry logic.
    """

    def __init__(self, config: GHArchiveConfig) -> None:
        """Initialize the downloader.

        Args:
            config: GH Archive configuration.
        """
        self.config = config
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry logic.

        Returns:
            requests.Session: Configured session.
        """
        session = requests.Session()
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def archive_for(self, archive_date: date, hour: int) -> ArchiveFile:
        """Build the ArchiveFile describing one snapshot.

        Args:
            archive_date: Date of the archive.
            hour: Hour of the archive (0-23).

        Returns:
            ArchiveFile: Snapshot metadata with its download URL.

        Raises:
            ValueError: If hour is not in range 0-23.
        """
        url = self.config.get_archive_url(archive_date, hour)
        return ArchiveFile(
            archive_date=archive_date,
            hour=hour,
            filename=f"{archive_date.isoformat()}-{hour}.json.gz",
            url=url,
        )

    def fetch(self, url: str, destination: Path) -> None:
        """Stream the resource at ``url`` into ``destination``.

        The body is written to a ``.part`` sibling first and renamed into
        place once complete, so a failed download never leaves a file at
        ``destination``.

        Args:
            url: URL to download.
            destination: Final local path.

        Raises:
            HTTPStatusError: If the final response is not 200.
            RedirectLoopError: If more than ``max_redirects`` hops are needed.
            NetworkError: On transport-level failure.
        """
        destination.parent.mkdir(parents=True, exist_ok=True)
        part_path = destination.with_name(destination.name + ".part")
        current_url = url

        try:
            for _ in range(self.config.max_redirects + 1):
                response = self.session.get(
                    current_url,
                    timeout=self.config.timeout_seconds,
                    stream=True,
                    allow_redirects=False,
                )
                try:
                    if response.status_code in REDIRECT_STATUSES:
                        location = response.headers.get("Location")
                        if not location:
                            raise HTTPStatusError(response.status_code, current_url)
                        logger.info(f"Redirected from {current_url} to {location}")
                        current_url = urljoin(current_url, location)
                        continue
                    if response.status_code != 200:
                        raise HTTPStatusError(response.status_code, current_url)
                    with open(part_path, "wb") as f:
                        for chunk in response.iter_content(
                            chunk_size=self.config.chunk_size
                        ):
                            f.write(chunk)
                finally:
                    response.close()
                part_path.replace(destination)
                return
            raise RedirectLoopError(
                f"Exceeded {self.config.max_redirects} redirects fetching {url}"
            )
        except requests.RequestException as e:
            part_path.unlink(missing_ok=True)
            raise NetworkError(f"Failed to download {current_url}: {e}") from e
        except Exception:
            part_path.unlink(missing_ok=True)
            raise

    def download_to_path(
        self,
        archive: ArchiveFile,
        output_dir: Path | None = None,
    ) -> ArchiveFile:
        """Download archive file to local filesystem.

        Args:
            archive: Archive file metadata.
            output_dir: Output directory (uses config default if None).

        Returns:
            ArchiveFile: Updated with local_path and size_bytes.

        Raises:
            DownloadError: If download fails.
        """
        if output_dir is None:
            output_dir = self.config.data_dir

        local_path = output_dir / archive.filename
        logger.info(f"Downloading {archive.url} to {local_path}")
        start_time = time.time()

        self.fetch(archive.url, local_path)

        archive.local_path = local_path
        archive.size_bytes = local_path.stat().st_size
        duration = time.time() - start_time
        logger.info(
            f"Saved {archive.filename}: "
            f"{archive.size_bytes / 1024 / 1024:.1f} MB, {duration:.2f}s"
        )

        return archive
