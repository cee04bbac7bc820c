"""Batch loading of decoded events into the event store.

This module provides the BatchLoader, which turns record lines into
rows and commits them in bounded transactions, and LoadResult, the
per-run tally it produces.
"""

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from github_archive.config import EventType
from github_archive.errors import RecordDecodeError, StoreError
from github_archive.ingestion.line_parser import decode_record
from github_archive.registry import EVENT_SCHEMAS, Envelope, EventSchema, lookup_schema
from github_archive.store.inserts import PreparedInsert

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10_000
MAX_RECORDED_ERRORS = 100


@dataclass
class LoadResult:
    """Result of loading one snapshot.

    Attributes:
        rows_accepted: Rows handed to the store (before id dedup).
        records_failed: Lines that were not usable event records.
        records_dropped: Records whose event type is not registered.
        type_counts: Accepted rows per event type.
        unknown_types: Dropped records per unrecognized type tag.
        started_at: Timestamp when loading started.
        completed_at: Timestamp when loading completed.
        errors: First few decode error messages.
    """

    rows_accepted: int
    records_failed: int
    records_dropped: int
    type_counts: dict[str, int]
    unknown_types: dict[str, int]
    started_at: datetime
    completed_at: datetime
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """Check if every line decoded cleanly.

        Returns:
            bool: True if no records failed.
        """
        return self.records_failed == 0

    @property
    def duration_seconds(self) -> float:
        """Calculate loading duration in seconds.

        Returns:
            float: Duration in seconds.
        """
        return (self.completed_at - self.started_at).total_seconds()

    def sorted_type_counts(self) -> list[tuple[str, int]]:
        """Event types ordered by descending row count."""
        return sorted(self.type_counts.items(), key=lambda item: (-item[1], item[0]))


class BatchLoader:
    """Buffers rows and writes them in one transaction per batch.

    The loader owns the store connection for the whole run. Each flush
    executes every buffered row's prepared insert inside a single
    transaction; a failed flush raises StoreError and earlier batches
    stay committed.

    Attributes:
        connection: Open connection to the event store.
        inserts: Prepared insert per event type.
        batch_size: Rows buffered before a flush.
        schemas: Registry used to route records.
    """

    def __init__(
        self,
        connection: Connection,
        inserts: Mapping[EventType, PreparedInsert],
        batch_size: int = DEFAULT_BATCH_SIZE,
        on_flush: Callable[[int], None] | None = None,
        schemas: Mapping[EventType, EventSchema] = EVENT_SCHEMAS,
    ) -> None:
        """Initialize the loader.

        Args:
            connection: Open connection to the event store.
            inserts: Prepared insert per event type.
            batch_size: Rows buffered before a flush.
            on_flush: Called with the running total after each full batch.
            schemas: Registry used to route records.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self.connection = connection
        self.inserts = inserts
        self.batch_size = batch_size
        self.schemas = schemas
        self._on_flush = on_flush
        self._batch: list[tuple[EventType, list[Any]]] = []
        self._type_counts: Counter[str] = Counter()
        self._unknown_types: Counter[str] = Counter()
        self._records_failed = 0
        self._errors: list[str] = []
        self._lines_seen = 0
        self._started_at = datetime.now(timezone.utc)

    @property
    def total(self) -> int:
        """Rows accepted so far."""
        return sum(self._type_counts.values())

    @property
    def pending(self) -> int:
        """Rows buffered but not yet flushed."""
        return len(self._batch)

    def accept(self, line: bytes | str) -> None:
        """Decode one line and buffer its row.

        Undecodable lines are counted as failures and unregistered event
        types are counted as drops; neither interrupts the run.

        Args:
            line: One newline-delimited JSON record.

        Raises:
            StoreError: If a triggered flush fails.
        """
        self._lines_seen += 1
        try:
            event = decode_record(line)
            if event.get("id") is None:
                raise RecordDecodeError("Record has no id")
        except RecordDecodeError as e:
            self._record_failure(e)
            return

        tag = event.get("type")
        match = lookup_schema(tag, self.schemas)
        if match is None:
            self._unknown_types[str(tag)] += 1
            logger.debug(f"Skipping event with unknown type '{tag}': {event.get('id')}")
            return

        event_type, schema = match
        values = Envelope.from_event(event).values() + schema.extract(
            event.get("payload")
        )
        self._batch.append((event_type, values))
        self._type_counts[event_type.value] += 1

        if len(self._batch) >= self.batch_size:
            self.flush()
            if self._on_flush is not None:
                self._on_flush(self.total)

    def accept_all(self, lines: Iterable[bytes | str]) -> None:
        """Accept every line of an iterable, in order."""
        for line in lines:
            self.accept(line)

    def flush(self) -> None:
        """Write all buffered rows in one transaction and clear the buffer.

        Raises:
            StoreError: If the transaction fails.
        """
        if not self._batch:
            return

        try:
            grouped: dict[EventType, list[dict[str, Any]]] = {}
            for event_type, values in self._batch:
                grouped.setdefault(event_type, []).append(
                    self.inserts[event_type].bind(values)
                )
            with self.connection.begin():
                for event_type, params in grouped.items():
                    self.connection.execute(self.inserts[event_type].statement, params)
        except (SQLAlchemyError, OverflowError, UnicodeError, ValueError) as e:
            raise StoreError(
                f"Failed to commit batch of {len(self._batch)} rows: {e}"
            ) from e

        logger.debug(f"Committed batch of {len(self._batch)} rows")
        self._batch.clear()

    def finish(self) -> LoadResult:
        """Flush the final partial batch and summarize the run.

        Returns:
            LoadResult: Counts for the whole run.

        Raises:
            StoreError: If the final flush fails.
        """
        self.flush()
        return LoadResult(
            rows_accepted=self.total,
            records_failed=self._records_failed,
            records_dropped=sum(self._unknown_types.values()),
            type_counts=dict(self._type_counts),
            unknown_types=dict(self._unknown_types),
            started_at=self._started_at,
            completed_at=datetime.now(timezone.utc),
            errors=list(self._errors),
        )

    def _record_failure(self, error: RecordDecodeError) -> None:
        self._records_failed += 1
        message = f"Line {self._lines_seen}: {error}"
        if len(self._errors) < MAX_RECORDED_ERRORS:
            self._errors.append(message)
        logger.debug(f"Skipping undecodable record. {message}")
