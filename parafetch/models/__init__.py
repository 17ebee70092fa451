"""
Core data models API surface for ParaFetch.

This file re-exports model classes from domain-specific modules so imports
like `from parafetch.models import X` keep working.
"""

from .download import (
    ProgressCallback,
    DownloadStatus,
    ErrorKind,
    ByteRange,
    ChunkState,
    AttemptResult,
    DownloadRequest,
    DownloadResult,
)
from .config import MIB, DownloadConfig

__all__ = [
    # Download models
    "ProgressCallback",
    "DownloadStatus",
    "ErrorKind",
    "ByteRange",
    "ChunkState",
    "AttemptResult",
    "DownloadRequest",
    "DownloadResult",
    # Config models
    "MIB",
    "DownloadConfig",
]
