"""Streaming gzip decompression for downloaded archive files."""

import gzip
import logging
import shutil
import time
import zlib
from pathlib import Path

from github_archive.errors import DecompressionError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


def decompress(
    source: Path,
    destination: Path,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Path:
    """Decompress a gzip file to ``destination`` without loading it whole.

    Output goes to a ``.part`` sibling that is renamed into place on
    success and removed on failure.

    Args:
        source: Path of the gzip-compressed file.
        destination: Path of the plain newline-delimited output.
        chunk_size: Bytes copied per read.

    Returns:
        Path: The destination path.

    Raises:
        DecompressionError: If the input is not valid gzip data or is truncated.
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    part_path = destination.with_name(destination.name + ".part")
    start_time = time.time()

    try:
        with gzip.open(source, "rb") as src, open(part_path, "wb") as dst:
            shutil.copyfileobj(src, dst, chunk_size)
    except (gzip.BadGzipFile, EOFError, zlib.error) as e:
        part_path.unlink(missing_ok=True)
        raise DecompressionError(f"Failed to decompress {source}: {e}") from e
    except Exception:
        part_path.unlink(missing_ok=True)
        raise

    part_path.replace(destination)
    duration = time.time() - start_time
    logger.info(
        f"Decompressed {source.name} to {destination.name}: "
        f"{destination.stat().st_size / 1024 / 1024:.1f} MB, {duration:.2f}s"
    )
    return destination
