"""Configuration models for the GitHub Archive loader.

This module defines Pydantic configuration models for:
- GH Archive data source settings
- SQLite store settings
- The closed set of event types the loader understands
"""

from datetime import date
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, computed_field


class EventType(str, Enum):
    """GitHub event types supported by GH Archive."""

    PUSH = "PushEvent"
    PULL_REQUEST = "PullRequestEvent"
    PULL_REQUEST_REVIEW = "PullRequestReviewEvent"
    PULL_REQUEST_REVIEW_COMMENT = "PullRequestReviewCommentEvent"
    ISSUES = "IssuesEvent"
    ISSUE_COMMENT = "IssueCommentEvent"
    WATCH = "WatchEvent"
    FORK = "ForkEvent"
    CREATE = "CreateEvent"
    DELETE = "DeleteEvent"
    RELEASE = "ReleaseEvent"
    MEMBER = "MemberEvent"
    PUBLIC = "PublicEvent"
    GOLLUM = "GollumEvent"
    COMMIT_COMMENT = "CommitCommentEvent"
    DISCUSSION = "DiscussionEvent"


class GHArchiveConfig(BaseModel):
    """Configuration for GitHub Archive data source.

    Attributes:
        base_url: Base URL for GH Archive files.
        data_dir: Local directory for downloaded and decompressed files.
        timeout_seconds: HTTP request timeout.
        max_retries: Maximum retry attempts for transient HTTP failures.
        max_redirects: Maximum redirect hops followed for one download.
        chunk_size: Bytes per streamed chunk (download, decompress, parse).
    """

    base_url: str = Field(
        default="https://data.gharchive.org",
        description="Base URL for GH Archive files",
    )
    data_dir: Path = Field(
        default=Path("archive-data"),
        description="Local directory for archive files",
    )
    timeout_seconds: int = Field(
        default=60,
        ge=10,
        le=300,
        description="HTTP request timeout in seconds",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Maximum retry attempts for failed downloads",
    )
    max_redirects: int = Field(
        default=5,
        ge=0,
        le=20,
        description="Maximum redirect hops before giving up",
    )
    chunk_size: int = Field(
        default=1024 * 1024,
        ge=1,
        description="Chunk size in bytes for streamed reads and writes",
    )

    def get_archive_url(self, archive_date: date, hour: int) -> str:
        """Generate URL for a specific archive file.

        Args:
            archive_date: Date of the archive.
            hour: Hour of the archive (0-23).

        Returns:
            str: Full URL to the archive file.

        Raises:
            ValueError: If hour is not in range 0-23.
        """
        if not 0 <= hour <= 23:
            raise ValueError(f"Hour must be 0-23, got {hour}")
        filename = f"{archive_date.isoformat()}-{hour}.json.gz"
        return f"{self.base_url}/{filename}"


class StoreConfig(BaseModel):
    """Configuration for the SQLite event store.

    Attributes:
        database_path: Path of the SQLite database file.
        batch_size: Rows buffered before one transactional flush.
    """

    database_path: Path = Field(
        default=Path("archive.db"),
        description="SQLite database file, rebuilt on every run",
    )
    batch_size: int = Field(
        default=10_000,
        ge=1,
        description="Rows per insert transaction",
    )

    @computed_field
    @property
    def artifact_paths(self) -> list[Path]:
        """Get the database file and its write-ahead side files.

        Returns:
            list: Main file, WAL file and shared-memory file paths.
        """
        path = self.database_path
        return [
            path,
            path.with_name(f"{path.name}-wal"),
            path.with_name(f"{path.name}-shm"),
        ]


class ArchiveConfig(BaseModel):
    """Main configuration for the GitHub Archive loader.

    Attributes:
        gh_archive: GitHub Archive data source configuration.
        store: SQLite store configuration.
    """

    gh_archive: GHArchiveConfig = Field(default_factory=GHArchiveConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
