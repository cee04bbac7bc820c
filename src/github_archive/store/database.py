"""SQLite engine setup and store file management.

This module creates engines for the event store and removes the files a
previous run left on disk.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def get_engine(database_path: Path) -> Engine:
    """Create an engine for the SQLite file at ``database_path``.

    Every new connection is switched to write-ahead logging.

    Args:
        database_path: Path of the SQLite database file.

    Returns:
        Engine: Engine bound to the file.
    """
    engine = create_engine(f"sqlite:///{database_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_wal_mode(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


def remove_store_files(paths: Iterable[Path]) -> None:
    """Delete the database file and its WAL/shared-memory side files.

    Files that do not exist are skipped.

    Args:
        paths: Main database file followed by its side files.
    """
    for path in paths:
        if path.exists():
            path.unlink()
            logger.info(f"Removed previous store file {path}")
