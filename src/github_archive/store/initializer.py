"""Store initialization driven by the schema registry.

Builds one table per registered event type: the envelope columns, then
the event type's payload columns, with indexes on repository name,
actor login and creation time plus any indexes the schema declares.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import Index, MetaData, Table, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from github_archive.config import EventType, StoreConfig
from github_archive.errors import StoreError
from github_archive.registry import ENVELOPE_COLUMNS, EVENT_SCHEMAS, EventSchema
from github_archive.store.database import get_engine, remove_store_files

logger = logging.getLogger(__name__)

STANDARD_INDEXES = {
    "repo": ("repo_name",),
    "actor": ("actor_login",),
    "created": ("created_at",),
}


def build_table(metadata: MetaData, schema: EventSchema) -> Table:
    """Define the table for one event schema.

    Args:
        metadata: MetaData the table is attached to.
        schema: Event schema to materialize.

    Returns:
        Table: Envelope columns followed by the schema's columns.
    """
    columns = [c.to_column() for c in ENVELOPE_COLUMNS]
    columns += [c.to_column() for c in schema.columns]
    indexes = [
        Index(f"idx_{schema.table}_{suffix}", *index_columns)
        for suffix, index_columns in STANDARD_INDEXES.items()
    ]
    indexes += [
        Index(f"idx_{schema.table}_{'_'.join(index_columns)}", *index_columns)
        for index_columns in schema.extra_indexes
    ]
    return Table(schema.table, metadata, *columns, *indexes)


def build_metadata(
    schemas: Mapping[EventType, EventSchema] = EVENT_SCHEMAS,
) -> tuple[MetaData, dict[EventType, Table]]:
    """Define every table in the registry.

    Args:
        schemas: Registry to build from.

    Returns:
        tuple: (MetaData, table per event type).
    """
    metadata = MetaData()
    tables = {
        event_type: build_table(metadata, schema)
        for event_type, schema in schemas.items()
    }
    return metadata, tables


@dataclass
class ArchiveStore:
    """Handle on a freshly built event store.

    Attributes:
        path: SQLite database file.
        engine: Engine bound to ``path``.
        tables: Table per registered event type.
    """

    path: Path
    engine: Engine
    tables: dict[EventType, Table]

    def row_counts(self) -> dict[EventType, int]:
        """Count the rows stored in each event table.

        Returns:
            dict: Row count per event type.

        Raises:
            StoreError: If a count query fails.
        """
        try:
            with self.engine.connect() as conn:
                return {
                    event_type: conn.execute(
                        select(func.count()).select_from(table)
                    ).scalar_one()
                    for event_type, table in self.tables.items()
                }
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count rows in {self.path}: {e}") from e

    def close(self) -> None:
        """Release all pooled connections (checkpoints the WAL)."""
        self.engine.dispose()


def initialize_store(
    config: StoreConfig,
    schemas: Mapping[EventType, EventSchema] = EVENT_SCHEMAS,
) -> ArchiveStore:
    """Rebuild the store from scratch.

    Any previous database file and its side files are deleted first.

    Args:
        config: Store configuration.
        schemas: Registry to build tables from.

    Returns:
        ArchiveStore: Handle on the new, empty store.

    Raises:
        StoreError: If any table or index cannot be created.
    """
    remove_store_files(config.artifact_paths)
    config.database_path.parent.mkdir(parents=True, exist_ok=True)

    metadata, tables = build_metadata(schemas)
    engine = get_engine(config.database_path)
    try:
        with engine.begin() as conn:
            metadata.create_all(bind=conn, checkfirst=False)
    except SQLAlchemyError as e:
        engine.dispose()
        raise StoreError(
            f"Failed to initialize store at {config.database_path}: {e}"
        ) from e

    logger.info(
        f"Store initialized at {config.database_path} with {len(tables)} tables"
    )
    return ArchiveStore(path=config.database_path, engine=engine, tables=tables)
