"""Unit tests for the batch loader."""

import json
from collections.abc import Iterator
from datetime import datetime
from typing import Any
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from github_archive.config import EventType, StoreConfig
from github_archive.errors import StoreError
from github_archive.ingestion.line_parser import split_lines
from github_archive.loading.batch_loader import BatchLoader, LoadResult
from github_archive.store.initializer import ArchiveStore, initialize_store
from github_archive.store.inserts import compile_inserts


def watch_line(event_id: str) -> str:
    """Serialize a minimal WatchEvent."""
    event = {
        "id": event_id,
        "type": "WatchEvent",
        "created_at": "2024-01-15T11:00:00Z",
        "actor": {},
        "repo": {},
        "payload": {"action": "started"},
    }
    return json.dumps(event)


@pytest.fixture
def store(store_config: StoreConfig) -> Iterator[ArchiveStore]:
    """Freshly initialized store, closed after the test."""
    store = initialize_store(store_config)
    yield store
    store.close()


def load(
    store: ArchiveStore,
    lines: list[bytes | str],
    batch_size: int = 10_000,
    on_flush=None,
) -> LoadResult:
    """Run lines through a BatchLoader and return its result."""
    with store.engine.connect() as conn:
        loader = BatchLoader(
            conn,
            compile_inserts(store.tables),
            batch_size=batch_size,
            on_flush=on_flush,
        )
        loader.accept_all(lines)
        return loader.finish()


class TestBatchLoader:
    """Tests for BatchLoader."""

    def test_duplicate_and_blank_lines(self, store: ArchiveStore) -> None:
        """Test a blank line is ignored and a duplicate id stores one row."""
        content = f"{watch_line('1')}\n\n{watch_line('1')}\n".encode("utf-8")

        result = load(store, list(split_lines([content])))

        assert store.row_counts()[EventType.WATCH] == 1
        assert result.records_failed == 0

    def test_routes_events_to_their_tables(
        self,
        store: ArchiveStore,
        sample_events_jsonl: str,
    ) -> None:
        """Test each event lands in the table of its type."""
        result = load(store, sample_events_jsonl.split("\n"))

        counts = store.row_counts()
        assert counts[EventType.PUSH] == 1
        assert counts[EventType.WATCH] == 1
        assert counts[EventType.PULL_REQUEST] == 1
        assert result.rows_accepted == 3
        assert result.type_counts == {
            "PushEvent": 1,
            "WatchEvent": 1,
            "PullRequestEvent": 1,
        }

    def test_stored_row_values(
        self,
        store: ArchiveStore,
        sample_pull_request_event: dict[str, Any],
    ) -> None:
        """Test envelope and payload columns are written together."""
        load(store, [json.dumps(sample_pull_request_event)])

        table = store.tables[EventType.PULL_REQUEST]
        with store.engine.connect() as conn:
            row = conn.execute(select(table)).mappings().one()

        assert row["id"] == "12345678903"
        assert row["repo_name"] == "test-org/test-repo"
        assert row["org_login"] == "test-org"
        assert row["action"] == "opened"
        assert row["number"] == 42
        pull_request = json.loads(row["pull_request"])
        assert pull_request["body"] == "Line one\r\nLine two"

    def test_unknown_type_is_dropped(self, store: ArchiveStore) -> None:
        """Test an unregistered type is counted as dropped, not failed."""
        lines = [
            watch_line("1"),
            json.dumps({"id": "2", "type": "SponsorshipEvent", "payload": {}}),
            watch_line("3"),
        ]

        result = load(store, lines)

        assert store.row_counts()[EventType.WATCH] == 2
        assert result.records_dropped == 1
        assert result.records_failed == 0
        assert result.unknown_types == {"SponsorshipEvent": 1}
        assert result.type_counts == {"WatchEvent": 2}

    def test_bad_lines_are_counted_and_skipped(self, store: ArchiveStore) -> None:
        """Test undecodable lines do not stop the run."""
        lines = [
            watch_line("1"),
            "not valid json",
            "[1, 2]",
            json.dumps({"type": "WatchEvent", "payload": {}}),
            watch_line("2"),
        ]

        result = load(store, lines)

        assert store.row_counts()[EventType.WATCH] == 2
        assert result.records_failed == 3
        assert result.success is False
        assert result.errors[0].startswith("Line 2:")
        assert "Record has no id" in result.errors[2]

    def test_batches_split_across_transactions(self, store: ArchiveStore) -> None:
        """Test N rows above the threshold are stored exactly once."""
        flushes: list[int] = []
        lines = [watch_line(str(i)) for i in range(25)]

        result = load(store, lines, batch_size=10, on_flush=flushes.append)

        assert flushes == [10, 20]
        assert result.rows_accepted == 25
        assert store.row_counts()[EventType.WATCH] == 25

    def test_extra_top_level_field_stored_in_other(
        self,
        store: ArchiveStore,
        sample_watch_event: dict[str, Any],
    ) -> None:
        """Test an unrecognized top-level field is kept in the other column."""
        event = {**sample_watch_event, "reactions": {"total_count": 3}}

        load(store, [json.dumps(event)])

        table = store.tables[EventType.WATCH]
        with store.engine.connect() as conn:
            row = conn.execute(select(table)).mappings().one()
        assert json.loads(row["other"]) == {"reactions": {"total_count": 3}}
        assert row["action"] == "started"

    def test_missing_payload_fields_become_null(self, store: ArchiveStore) -> None:
        """Test a registered event with an empty payload stores NULLs."""
        line = json.dumps({"id": "9", "type": "ReleaseEvent", "created_at": "t"})

        load(store, [line])

        table = store.tables[EventType.RELEASE]
        with store.engine.connect() as conn:
            row = conn.execute(select(table.c.action, table.c.release)).one()
        assert tuple(row) == (None, None)

    def test_lone_surrogate_is_stored_with_neighbours(self, store: ArchiveStore) -> None:
        """Test a lone surrogate escape is replaced and the batch still commits."""
        issue_line = (
            '{"id": "2", "type": "IssuesEvent", "created_at": "t", '
            '"payload": {"action": "opened", "issue": {"title": "\\ud83d"}}}'
        )
        lines = [watch_line("1"), issue_line, watch_line("3")]

        result = load(store, lines)

        assert result.rows_accepted == 3
        counts = store.row_counts()
        assert counts[EventType.WATCH] == 2
        assert counts[EventType.ISSUES] == 1
        table = store.tables[EventType.ISSUES]
        with store.engine.connect() as conn:
            issue = conn.execute(select(table.c.issue)).scalar_one()
        assert json.loads(issue) == {"title": "\ufffd"}

    def test_integer_beyond_64_bits_is_stored(
        self,
        store: ArchiveStore,
    ) -> None:
        """Test an integer beyond 64 bits is stored without failing the batch."""
        pull_request_line = json.dumps(
            {
                "id": "2",
                "type": "PullRequestEvent",
                "created_at": "t",
                "actor": {"id": 2**64},
                "payload": {"action": "opened", "number": 2**70},
            }
        )
        lines = [watch_line("1"), pull_request_line, watch_line("3")]

        load(store, lines)

        assert store.row_counts()[EventType.WATCH] == 2
        table = store.tables[EventType.PULL_REQUEST]
        with store.engine.connect() as conn:
            row = conn.execute(select(table.c.number, table.c.actor_id)).one()
        # INTEGER affinity may keep the decimal text or convert it to REAL
        assert float(row.number) == float(2**70)
        assert float(row.actor_id) == float(2**64)

    def test_bind_failure_raises_store_error(self) -> None:
        """Test a value the driver rejects surfaces as StoreError."""
        connection = MagicMock()
        connection.execute.side_effect = OverflowError(
            "Python int too large to convert to SQLite INTEGER"
        )
        prepared = MagicMock()
        prepared.bind.return_value = {}
        loader = BatchLoader(connection, {EventType.WATCH: prepared}, batch_size=1)

        with pytest.raises(StoreError, match="Failed to commit batch"):
            loader.accept(watch_line("1"))

    def test_flush_failure_raises_store_error(self) -> None:
        """Test a failed transaction surfaces as StoreError."""
        connection = MagicMock()
        connection.execute.side_effect = OperationalError("INSERT", {}, Exception("locked"))
        prepared = MagicMock()
        prepared.bind.return_value = {}
        loader = BatchLoader(connection, {EventType.WATCH: prepared}, batch_size=1)

        with pytest.raises(StoreError, match="Failed to commit batch"):
            loader.accept(watch_line("1"))

    def test_invalid_batch_size_rejected(self) -> None:
        """Test a non-positive batch size is refused."""
        with pytest.raises(ValueError, match="batch_size"):
            BatchLoader(MagicMock(), {}, batch_size=0)


class TestLoadResult:
    """Tests for LoadResult dataclass."""

    def test_sorted_type_counts_descending(self) -> None:
        """Test types are ordered by descending count."""
        result = LoadResult(
            rows_accepted=6,
            records_failed=0,
            records_dropped=0,
            type_counts={"WatchEvent": 1, "PushEvent": 3, "ForkEvent": 2},
            unknown_types={},
            started_at=datetime(2024, 1, 15, 12, 0, 0),
            completed_at=datetime(2024, 1, 15, 12, 0, 30),
        )

        assert result.sorted_type_counts() == [
            ("PushEvent", 3),
            ("ForkEvent", 2),
            ("WatchEvent", 1),
        ]
        assert result.duration_seconds == 30.0
        assert result.success is True
