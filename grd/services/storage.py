"""Storage service for handling file system operations.

This module provides the file operations used when placing an executable
at its destination: atomic writes, moves and permission changes.
"""

import errno
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from ..constants import CHUNK_SIZE, EXECUTABLE_MODE, TEMP_FILE_PREFIX
from ..exceptions import FilesystemError
from ..logger import get_logger

logger = get_logger(__name__)


class StorageService:
    """Service for handling file system operations."""

    def make_executable(self, path: Path) -> None:
        """Make file executable.

        Does nothing on Windows, where executability comes from the name.

        Args:
            path: Path to file to make executable

        """
        if os.name == "nt":
            return
        logger.debug("🔧 Making executable: %s", path.name)
        try:
            os.chmod(path, EXECUTABLE_MODE)
        except OSError as e:
            raise FilesystemError(
                f"Failed to set permissions on {path}: {e}"
            ) from e
        logger.debug("✅ File permissions updated")

    def move_file(self, source: Path, destination: Path) -> Path:
        """Move file from source to destination, replacing it.

        Args:
            source: Source file path
            destination: Destination file path

        Returns:
            Final destination path

        """
        if source == destination:
            return destination

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("📦 Moving file: %s → %s", source, destination)
            try:
                os.replace(source, destination)
            except OSError as e:
                if e.errno != errno.EXDEV:
                    raise
                # Different filesystems; copy then swap into place
                with open(source, "rb") as stream:
                    self.write_chunks(
                        iter(lambda: stream.read(CHUNK_SIZE), b""), destination
                    )
                source.unlink(missing_ok=True)
        except FilesystemError:
            raise
        except OSError as e:
            raise FilesystemError(
                f"Failed to move {source} to {destination}: {e}"
            ) from e
        return destination

    def write_chunks(self, chunks: Iterable[bytes], destination: Path) -> Path:
        """Write chunks of bytes to ``destination`` atomically.

        The content goes to a temporary file beside the destination first
        and is renamed over it only once complete, so a failure never
        leaves a partial file at ``destination``.

        Args:
            chunks: Content in order
            destination: Target file path

        Returns:
            Final destination path

        """
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(
                prefix=TEMP_FILE_PREFIX, dir=destination.parent
            )
        except OSError as e:
            raise FilesystemError(
                f"Cannot write to {destination.parent}: {e}"
            ) from e

        temp_path = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                for chunk in chunks:
                    f.write(chunk)
            os.replace(temp_path, destination)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise FilesystemError(f"Failed to write {destination}: {e}") from e
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug("💾 Wrote %s", destination)
        return destination

    def write_bytes(self, data: bytes, destination: Path) -> Path:
        """Write ``data`` to ``destination`` atomically."""
        return self.write_chunks((data,), destination)

