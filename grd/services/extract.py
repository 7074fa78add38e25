"""Archive extraction into the destination directory.

Formats are detected from magic bytes first and the asset name second.
Supported archives are unpacked to a single executable; anything
unrecognized is placed as-is.
"""

import gzip
import tarfile
import zipfile
import zlib
from collections.abc import Callable, Iterator, Sequence
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import BinaryIO, TypeVar

from ..constants import (
    CHUNK_SIZE,
    FORMAT_SNIFF_SIZE,
    GZIP_MAGIC,
    TAR_MAGIC,
    TAR_MAGIC_OFFSET,
    UNSUPPORTED_ARCHIVE_EXTENSIONS,
    ZIP_MAGICS,
)
from ..exceptions import (
    AmbiguousArchiveContentsError,
    UnsupportedArchiveFormatError,
    error_context,
)
from ..logger import get_logger
from ..platform import PlatformDescriptor
from .download import DownloadBuffer, FileBuffer, MemoryBuffer
from .storage import StorageService

logger = get_logger(__name__)

T = TypeVar("T")

TAR_GZIP_EXTENSIONS = (".tar.gz", ".tgz")
GZIP_EXTENSIONS = (*TAR_GZIP_EXTENSIONS, ".gz")
ARCHIVE_EXTENSIONS = (*GZIP_EXTENSIONS, ".zip", ".tar")


class ArchiveFormat(str, Enum):
    """Asset formats the extractor handles."""

    GZIP = "gzip"
    ZIP = "zip"
    TAR = "tar"
    RAW = "raw"


def _has_tar_magic(head: bytes) -> bool:
    end = TAR_MAGIC_OFFSET + len(TAR_MAGIC)
    return head[TAR_MAGIC_OFFSET:end] == TAR_MAGIC


def detect_format(head: bytes, asset_name: str) -> ArchiveFormat:
    """Detect the format of an asset.

    Args:
        head: Leading bytes of the content
        asset_name: Asset file name

    Returns:
        Detected format; RAW for anything unrecognized

    Raises:
        UnsupportedArchiveFormatError: If the name has an archive extension
            that cannot be unpacked (``.7z``, ``.tar.xz``, ...)

    """
    if head.startswith(GZIP_MAGIC):
        return ArchiveFormat.GZIP
    if head.startswith(ZIP_MAGICS):
        return ArchiveFormat.ZIP
    if _has_tar_magic(head):
        return ArchiveFormat.TAR

    name = asset_name.lower()
    if name.endswith(GZIP_EXTENSIONS):
        return ArchiveFormat.GZIP
    if name.endswith(".zip"):
        return ArchiveFormat.ZIP
    if name.endswith(".tar"):
        return ArchiveFormat.TAR
    if name.endswith(UNSUPPORTED_ARCHIVE_EXTENSIONS):
        raise UnsupportedArchiveFormatError(
            f"Unsupported archive format: {asset_name}", asset=asset_name
        )
    return ArchiveFormat.RAW


def strip_archive_suffix(asset_name: str) -> str:
    """Asset name without a known archive extension."""
    lowered = asset_name.lower()
    for suffix in ARCHIVE_EXTENSIONS:
        if lowered.endswith(suffix):
            return asset_name[: -len(suffix)]
    return asset_name


def _read_chunks(source: BinaryIO, kind: str) -> Iterator[bytes]:
    """Read ``source`` in chunks, reporting corrupt data as unsupported."""
    try:
        while chunk := source.read(CHUNK_SIZE):
            yield chunk
    except (OSError, EOFError, zlib.error, zipfile.BadZipFile) as e:
        raise UnsupportedArchiveFormatError(f"Corrupt {kind} data: {e}") from e


class ArchiveExtractor:
    """Places a downloaded asset at its destination as an executable."""

    def __init__(
        self,
        platform: PlatformDescriptor,
        storage: StorageService | None = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            platform: Target platform, deciding the ``.exe`` handling
            storage: File operations; a default StorageService if None

        """
        self.platform = platform
        self.storage = storage or StorageService()
        self._handlers: dict[
            ArchiveFormat, Callable[[DownloadBuffer, Path, str, str | None], Path]
        ] = {
            ArchiveFormat.GZIP: self._extract_gzip,
            ArchiveFormat.ZIP: self._extract_zip,
            ArchiveFormat.TAR: self._extract_tar,
            ArchiveFormat.RAW: self._extract_raw,
        }

    def extract(
        self,
        buffer: DownloadBuffer,
        asset_name: str,
        destination: Path,
        bin_name: str | None = None,
        default_name: str | None = None,
        no_decompress: bool = False,
    ) -> Path:
        """Extract or place ``buffer`` under ``destination``.

        The buffer is consumed: it is released whether this succeeds or
        fails.

        Args:
            buffer: Downloaded asset content
            asset_name: Asset file name
            destination: Destination directory
            bin_name: Explicit name of the binary
            default_name: Fallback binary name, usually the repository name
            no_decompress: Place the asset verbatim without inspecting it

        Returns:
            Path of the produced executable

        Raises:
            AmbiguousArchiveContentsError: If the binary cannot be identified
            UnsupportedArchiveFormatError: For unhandled or corrupt archives
            FilesystemError: If writing the output fails

        """
        try:
            with error_context(asset=asset_name):
                if no_decompress:
                    target = destination / (bin_name or asset_name)
                    output = self._place_verbatim(buffer, target)
                else:
                    archive_format = detect_format(
                        buffer.head(FORMAT_SNIFF_SIZE), asset_name
                    )
                    logger.debug("Detected %s format for %s", archive_format.value, asset_name)
                    expected = bin_name or default_name or strip_archive_suffix(asset_name)
                    if archive_format is ArchiveFormat.RAW:
                        expected = self._raw_name(asset_name, bin_name or default_name)
                    output = self._handlers[archive_format](
                        buffer, destination, expected, bin_name
                    )

                self.storage.make_executable(output)
                logger.debug("Placed executable at %s", output)
                return output
        finally:
            buffer.release()

    def _raw_name(self, asset_name: str, name: str | None) -> str:
        if not name:
            return asset_name
        if asset_name.lower().endswith(".exe") and not name.lower().endswith(".exe"):
            return name + ".exe"
        return name

    def _place_verbatim(self, buffer: DownloadBuffer, target: Path) -> Path:
        if isinstance(buffer, FileBuffer):
            source = buffer.detach()
            try:
                return self.storage.move_file(source, target)
            except BaseException:
                source.unlink(missing_ok=True)
                raise
        if isinstance(buffer, MemoryBuffer) and buffer.data is not None:
            return self.storage.write_bytes(buffer.data, target)
        with buffer.open() as stream:
            return self.storage.write_chunks(_read_chunks(stream, "asset"), target)

    def _extract_raw(
        self,
        buffer: DownloadBuffer,
        destination: Path,
        expected: str,
        bin_name: str | None,
    ) -> Path:
        return self._place_verbatim(buffer, destination / expected)

    def _extract_gzip(
        self,
        buffer: DownloadBuffer,
        destination: Path,
        expected: str,
        bin_name: str | None,
    ) -> Path:
        with buffer.open() as stream, gzip.GzipFile(fileobj=stream) as gz:
            try:
                head = gz.read(FORMAT_SNIFF_SIZE)
            except (OSError, EOFError, zlib.error) as e:
                raise UnsupportedArchiveFormatError(f"Corrupt gzip data: {e}") from e

        if _has_tar_magic(head):
            return self._extract_tar(buffer, destination, expected, bin_name)

        target = destination / self._with_executable_suffix(expected)
        with buffer.open() as stream, gzip.GzipFile(fileobj=stream) as gz:
            return self.storage.write_chunks(_read_chunks(gz, "gzip"), target)

    def _extract_zip(
        self,
        buffer: DownloadBuffer,
        destination: Path,
        expected: str,
        bin_name: str | None,
    ) -> Path:
        with buffer.open() as stream:
            try:
                with zipfile.ZipFile(stream) as archive:
                    entries = [info for info in archive.infolist() if not info.is_dir()]
                    entry = self._pick_entry(entries, lambda info: info.filename, expected)
                    target = destination / self._entry_target(entry.filename, bin_name)
                    with _open_zip_entry(archive, entry) as source:
                        return self.storage.write_chunks(
                            _read_chunks(source, "zip"), target
                        )
            except zipfile.BadZipFile as e:
                raise UnsupportedArchiveFormatError(f"Corrupt zip archive: {e}") from e

    def _extract_tar(
        self,
        buffer: DownloadBuffer,
        destination: Path,
        expected: str,
        bin_name: str | None,
    ) -> Path:
        with buffer.open() as stream:
            try:
                # r:* also unwraps gzip-compressed tarballs
                with tarfile.open(fileobj=stream, mode="r:*") as archive:
                    entries = [member for member in archive.getmembers() if member.isfile()]
                    entry = self._pick_entry(entries, lambda member: member.name, expected)
                    target = destination / self._entry_target(entry.name, bin_name)
                    source = archive.extractfile(entry)
                    if source is None:
                        raise UnsupportedArchiveFormatError(
                            f"Cannot read archive entry: {entry.name}"
                        )
                    with source:
                        return self.storage.write_chunks(
                            _read_chunks(source, "tar"), target
                        )
            except (tarfile.TarError, EOFError, zlib.error) as e:
                raise UnsupportedArchiveFormatError(f"Corrupt tar archive: {e}") from e

    def _pick_entry(
        self,
        entries: Sequence[T],
        get_name: Callable[[T], str],
        expected: str,
    ) -> T:
        """Choose the archive entry holding the binary.

        A lone file is taken as-is; otherwise the entry whose base name is
        ``expected`` (case-insensitive) must be unique.
        """
        if len(entries) == 1:
            return entries[0]

        wanted = {expected.lower()}
        suffix = self.platform.executable_suffix
        if suffix:
            wanted.add(f"{expected}{suffix}".lower())

        matches = [e for e in entries if _base_name(get_name(e)).lower() in wanted]
        if len(matches) == 1:
            return matches[0]

        names = ", ".join(get_name(e) for e in entries) or "no files"
        if matches:
            message = f"Several archive entries are named '{expected}': {names}"
        else:
            message = f"No archive entry named '{expected}' among: {names}"
        raise AmbiguousArchiveContentsError(message)

    def _entry_target(self, entry_name: str, bin_name: str | None) -> str:
        if bin_name:
            return self._with_executable_suffix(bin_name)
        name = _base_name(entry_name)
        if not name or name in (".", ".."):
            raise UnsupportedArchiveFormatError(f"Invalid archive entry name: {entry_name!r}")
        return name

    def _with_executable_suffix(self, name: str) -> str:
        suffix = self.platform.executable_suffix
        if suffix and not name.lower().endswith(suffix):
            return f"{name}{suffix}"
        return name


def _base_name(entry_name: str) -> str:
    return PurePosixPath(entry_name.replace("\\", "/")).name


def _open_zip_entry(archive: zipfile.ZipFile, entry: zipfile.ZipInfo) -> BinaryIO:
    """Open a zip entry, reporting undecodable entries as unsupported."""
    try:
        return archive.open(entry)
    except NotImplementedError as e:
        # Compression methods such as deflate64
        raise UnsupportedArchiveFormatError(
            f"Unsupported zip compression for {entry.filename}: {e}"
        ) from e
    except RuntimeError as e:
        # Encrypted entries need a password
        raise UnsupportedArchiveFormatError(
            f"Cannot read zip entry {entry.filename}: {e}"
        ) from e
