"""Insert statements derived from the generated tables."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Insert, Table

from github_archive.config import EventType


@dataclass(frozen=True)
class PreparedInsert:
    """An ``INSERT OR IGNORE`` statement for one event table.

    Rows whose id is already stored are skipped, so loading the same
    snapshot twice leaves one row per event.

    Attributes:
        statement: The insert statement, built once and reused.
        column_names: Bound columns, envelope first, in table order.
    """

    statement: Insert
    column_names: tuple[str, ...]

    def bind(self, values: Sequence[Any]) -> dict[str, Any]:
        """Pair row values with column names.

        Raises:
            ValueError: If the value count does not match the column count.
        """
        return dict(zip(self.column_names, values, strict=True))


def prepare_insert(table: Table) -> PreparedInsert:
    """Build the insert-or-ignore statement for ``table``."""
    return PreparedInsert(
        statement=table.insert().prefix_with("OR IGNORE"),
        column_names=tuple(c.name for c in table.columns),
    )


def compile_inserts(
    tables: Mapping[EventType, Table],
) -> dict[EventType, PreparedInsert]:
    """Build one insert statement per event type."""
    return {event_type: prepare_insert(table) for event_type, table in tables.items()}
