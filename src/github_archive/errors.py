"""Exception hierarchy for the GitHub Archive loader.

Each pipeline stage raises its own error type so a failed run says
which stage broke. Only RecordDecodeError is recovered from; the rest
abort the run.
"""


class ArchiveError(Exception):
    """Base exception for all loader failures."""


class ArgumentError(ArchiveError):
    """Raised for a malformed snapshot date or hour."""


class DownloadError(ArchiveError):
    """Raised when a snapshot cannot be fetched."""


class HTTPStatusError(DownloadError):
    """Raised when the server answers with a non-success status."""

    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class NetworkError(DownloadError):
    """Raised for transport-level download failures."""


class RedirectLoopError(DownloadError):
    """Raised when a download exceeds the redirect hop limit."""


class DecompressionError(ArchiveError):
    """Raised for corrupt or truncated compressed input."""


class RecordDecodeError(ArchiveError):
    """Raised when a line is not a usable JSON event record."""


class StoreError(ArchiveError):
    """Raised for schema creation and transaction failures."""
