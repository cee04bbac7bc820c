"""Newline-delimited JSON parsing over a chunked byte stream.

Records are split on the line-feed byte only. GH Archive payloads can
carry carriage returns inside string values, so ``\\r`` is never treated
as a separator.
"""

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from github_archive.errors import RecordDecodeError

LINE_FEED = b"\n"


def iter_chunks(path: Path, chunk_size: int) -> Iterator[bytes]:
    """Read a file as a sequence of byte chunks.

    Args:
        path: File to read.
        chunk_size: Maximum bytes per chunk.

    Yields:
        bytes: Consecutive chunks of the file.
    """
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            yield chunk


def split_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Reassemble logical lines from arbitrarily fragmented chunks.

    The partial line left at the end of each chunk is carried into the
    next one, and whatever remains after the last chunk is emitted even
    without a trailing line feed. Blank lines are dropped.

    Args:
        chunks: Byte chunks in stream order.

    Yields:
        bytes: One record line, without its line feed.
    """
    remainder = b""
    for chunk in chunks:
        lines = (remainder + chunk).split(LINE_FEED)
        remainder = lines.pop()
        for line in lines:
            if line.strip():
                yield line
    if remainder.strip():
        yield remainder


def iter_lines(path: Path, chunk_size: int) -> Iterator[bytes]:
    """Stream the non-blank lines of a newline-delimited file.

    Args:
        path: Decompressed archive file.
        chunk_size: Bytes read per chunk.

    Returns:
        Iterator: Record lines, one at a time.
    """
    return split_lines(iter_chunks(path, chunk_size))


def decode_record(line: bytes | str) -> dict[str, Any]:
    """Decode one line into an event record.

    Args:
        line: A single JSON line.

    Returns:
        dict: The decoded event object.

    Raises:
        RecordDecodeError: If the line is not JSON or not a JSON object.
    """
    try:
        record = json.loads(line)
    except ValueError as e:
        raise RecordDecodeError(f"Invalid JSON: {e}") from e
    if not isinstance(record, dict):
        raise RecordDecodeError(
            f"Expected a JSON object, got {type(record).__name__}"
        )
    return record
