"""Loading stage: decoded events into the event store."""

from github_archive.loading.batch_loader import BatchLoader, LoadResult

__all__ = [
    "BatchLoader",
    "LoadResult",
]
