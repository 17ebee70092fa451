"""
Services layer for ParaFetch: HTTP probing, chunk transfers and the
filesystem side of a download.
"""

from .download import DownloadService
from .probe import SizeProber
from .chunk_worker import ChunkWorker

__all__ = [
    "DownloadService",
    "SizeProber",
    "ChunkWorker",
]
