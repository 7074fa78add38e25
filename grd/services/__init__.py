"""Download, extraction and storage services used by the commands."""

from .download import DownloadBuffer, DownloadService, FileBuffer, MemoryBuffer
from .extract import ArchiveExtractor, ArchiveFormat, detect_format
from .storage import StorageService

__all__ = [
    "ArchiveExtractor",
    "ArchiveFormat",
    "DownloadBuffer",
    "DownloadService",
    "FileBuffer",
    "MemoryBuffer",
    "StorageService",
    "detect_format",
]
