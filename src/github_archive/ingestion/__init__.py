"""Data ingestion module for the GitHub Archive loader.

This module provides utilities for downloading GH Archive snapshots,
decompressing them and streaming their records line by line.
"""

from github_archive.ingestion.decompressor import decompress
from github_archive.ingestion.downloader import (
    ArchiveFile,
    GHArchiveDownloader,
)
from github_archive.ingestion.line_parser import (
    decode_record,
    iter_lines,
    split_lines,
)

__all__ = [
    "ArchiveFile",
    "GHArchiveDownloader",
    "decode_record",
    "decompress",
    "iter_lines",
    "split_lines",
]
