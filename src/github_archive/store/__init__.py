"""SQLite event store for the GitHub Archive loader."""

from github_archive.store.database import get_engine, remove_store_files
from github_archive.store.initializer import (
    ArchiveStore,
    build_metadata,
    initialize_store,
)
from github_archive.store.inserts import PreparedInsert, compile_inserts

__all__ = [
    "ArchiveStore",
    "PreparedInsert",
    "build_metadata",
    "compile_inserts",
    "get_engine",
    "initialize_store",
    "remove_store_files",
]
