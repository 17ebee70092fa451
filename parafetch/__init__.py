"""
ParaFetch - parallel ranged HTTP downloads with chunk and job level retry.
"""

from .interfaces.api import ParallelDownloader, download_file
from .models import (
    DownloadConfig, DownloadRequest, DownloadResult, DownloadStatus, ErrorKind
)

__version__ = "0.1.0"

__all__ = [
    "ParallelDownloader",
    "download_file",
    "DownloadConfig",
    "DownloadRequest",
    "DownloadResult",
    "DownloadStatus",
    "ErrorKind",
]
