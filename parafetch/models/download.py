"""
Download domain models for ParaFetch.

This module contains data classes and enums representing download requests,
byte ranges, per-chunk state, attempt outcomes and job results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional


ProgressCallback = Callable[[int], None]


class DownloadStatus(Enum):
    """Status enumeration for a download job."""

    PENDING = "pending"
    PROBING = "probing"
    PLANNING = "planning"
    DOWNLOADING = "downloading"
    BACKING_OFF = "backing_off"
    MERGING = "merging"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ErrorKind(Enum):
    """Reason an attempt stopped before every chunk finished."""

    OK = "ok"
    CONNECTIVITY_LOST = "connectivity_lost"         # Retryable at job level
    FATAL_CONNECTION_ERROR = "fatal_connection"     # A chunk ran out of retries
    CANCELLED = "cancelled"                         # Requested by the caller


@dataclass(frozen=True)
class ByteRange:
    """Inclusive byte range of the remote resource."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError("Range start cannot be negative")
        if self.end < self.start:
            raise ValueError(f"Invalid range: {self.start}-{self.end}")

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def header(self) -> str:
        """Value for the HTTP ``Range`` request header."""
        return f"bytes={self.start}-{self.end}"


@dataclass
class ChunkState:
    """Mutable state of one planned chunk, shared under the progress lock."""

    holding_path: Optional[Path] = None
    progress: int = 0
    finished: bool = False


@dataclass
class AttemptResult:
    """Outcome of one parallel pass over the chunks of a job."""

    attempt: int
    completed: bool
    error: ErrorKind = ErrorKind.OK
    cause: Optional[Exception] = None

    @property
    def is_retryable(self) -> bool:
        return self.error not in (ErrorKind.FATAL_CONNECTION_ERROR, ErrorKind.CANCELLED)


@dataclass
class DownloadRequest:
    """Single-resource download request specification."""

    url: str
    destination: Path
    parallelism: int = 0
    progress_callback: Optional[ProgressCallback] = None
    skip_tls_validation: bool = False

    # Metadata
    request_id: str = field(default_factory=lambda: f"req_{datetime.now().strftime('%Y%m%d_%H%M%S')}")
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("URL is required")
        if not self.destination:
            raise ValueError("Destination path is required")
        self.destination = Path(self.destination)


@dataclass
class DownloadResult:
    """Result of a download job."""

    request: DownloadRequest
    status: DownloadStatus = DownloadStatus.PENDING

    total_size: int = 0
    chunk_count: int = 0
    attempts: int = 0
    bytes_written: int = 0
    last_error: ErrorKind = ErrorKind.OK

    # Metadata
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def is_successful(self) -> bool:
        return self.status == DownloadStatus.COMPLETED

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    @property
    def average_speed(self) -> float:
        """Average speed of the job in bytes/second."""

        duration = self.duration_seconds
        if duration > 0 and self.bytes_written > 0:
            return self.bytes_written / duration
        return 0.0

    def mark_completed(self, status: DownloadStatus, error_message: Optional[str] = None) -> None:
        self.status = status
        self.completed_at = datetime.now()
        if error_message:
            self.error_message = error_message


__all__ = [
    "ProgressCallback",
    "DownloadStatus",
    "ErrorKind",
    "ByteRange",
    "ChunkState",
    "AttemptResult",
    "DownloadRequest",
    "DownloadResult",
]
