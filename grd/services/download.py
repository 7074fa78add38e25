"""Bounded download service for release assets.

Asset bytes are kept in memory while they fit under the configured memory
limit and spill to a temporary file otherwise:

- a declared ``Content-Length`` above the limit streams straight to disk;
- otherwise the body streams into memory, and if it outgrows the limit the
  memory attempt is abandoned and the download restarts once, from the
  beginning, into a temporary file.

Temporary files never outlive a failed or cancelled download.
"""

import asyncio
import contextlib
import io
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from pathlib import Path
from typing import BinaryIO

import aiohttp
from tqdm.asyncio import tqdm

from ..auth import GitHubAuthManager
from ..constants import CHUNK_SIZE, TEMP_FILE_PREFIX
from ..exceptions import (
    DownloadCancelledError,
    DownloadError,
    DownloadTooLargeError,
)
from ..logger import get_logger
from ..utils import format_size

logger = get_logger(__name__)


class DownloadBuffer(ABC):
    """Downloaded asset bytes, held in memory or in a temporary file.

    The holder of a buffer owns it and must release it; using the buffer
    as a context manager does so on exit.
    """

    size: int

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open the content for reading from the start."""

    def head(self, length: int) -> bytes:
        """Return up to ``length`` leading bytes."""
        with self.open() as stream:
            return stream.read(length)

    @abstractmethod
    def release(self) -> None:
        """Free the memory or delete the temporary file."""

    def __enter__(self) -> "DownloadBuffer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class MemoryBuffer(DownloadBuffer):
    """Asset bytes held in memory."""

    def __init__(self, data: bytes) -> None:
        self.data: bytes | None = data
        self.size = len(data)

    def open(self) -> BinaryIO:
        if self.data is None:
            raise DownloadError("Download buffer already released")
        return io.BytesIO(self.data)

    def release(self) -> None:
        self.data = None

    def __repr__(self) -> str:
        return f"MemoryBuffer(size={self.size})"


class FileBuffer(DownloadBuffer):
    """Asset bytes held in a temporary file owned by the buffer."""

    def __init__(self, path: Path, size: int) -> None:
        self.path: Path | None = path
        self.size = size

    def open(self) -> BinaryIO:
        if self.path is None:
            raise DownloadError("Download buffer already released")
        return open(self.path, "rb")

    def detach(self) -> Path:
        """Hand the temporary file over to the caller.

        After this the buffer no longer deletes the file on release.
        """
        if self.path is None:
            raise DownloadError("Download buffer already released")
        path, self.path = self.path, None
        return path

    def release(self) -> None:
        if self.path is not None:
            logger.debug("Removing temporary file: %s", self.path)
            self.path.unlink(missing_ok=True)
            self.path = None

    def __repr__(self) -> str:
        return f"FileBuffer(path={self.path}, size={self.size})"


class DownloadService:
    """Service for downloading release assets under a memory bound."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        auth_manager: GitHubAuthManager | None = None,
        temp_dir: Path | None = None,
    ) -> None:
        """Initialize download service with HTTP session.

        Args:
            session: aiohttp session for downloads
            auth_manager: Optional auth manager supplying a bearer token
            temp_dir: Directory for temporary files; the platform temp
                area if None

        """
        self.session = session
        self.auth_manager = auth_manager
        self.temp_dir = temp_dir

    async def download(
        self,
        url: str,
        memory_limit: int,
        cancel_event: asyncio.Event | None = None,
        show_progress: bool = False,
        label: str | None = None,
    ) -> DownloadBuffer:
        """Download ``url`` into a memory or file buffer.

        Args:
            url: URL to download from
            memory_limit: Largest body in bytes kept in memory
            cancel_event: Setting this event aborts the download
            show_progress: Whether to show a progress bar
            label: Name shown in the progress bar

        Returns:
            The downloaded content

        Raises:
            DownloadCancelledError: If ``cancel_event`` was set
            DownloadError: If the transfer fails

        """
        label = label or Path(url).name
        async with self._get(url) as response:
            declared = self._declared_length(response)
            logger.debug(
                "Downloading %s (%s)",
                label,
                format_size(declared) if declared is not None else "size unknown",
            )

            if declared is not None and declared > memory_limit:
                logger.info(
                    "Using temp file due to size > %s bytes", memory_limit
                )
                return await self._stream_to_file(
                    response, declared, cancel_event, show_progress, label
                )

            try:
                return await self._stream_to_memory(
                    response,
                    declared,
                    memory_limit,
                    cancel_event,
                    show_progress,
                    label,
                )
            except DownloadTooLargeError as e:
                logger.info("%s; restarting download into a temp file", e)

        # Single restart; a file-backed attempt has no size ceiling
        async with self._get(url) as response:
            declared = self._declared_length(response)
            return await self._stream_to_file(
                response, declared, cancel_event, show_progress, label
            )

    @contextlib.asynccontextmanager
    async def _get(self, url: str) -> AsyncIterator[aiohttp.ClientResponse]:
        """Issue the GET request and translate transport failures."""
        headers: dict[str, str] = {}
        if self.auth_manager is not None:
            headers = self.auth_manager.apply_auth(headers)

        try:
            async with self.session.get(url, headers=headers) as response:
                if response.status >= 400:
                    raise DownloadError(
                        f"Download failed with HTTP {response.status}: {url}"
                    )
                yield response
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error("Download failed: %s - %s", url, e)
            raise DownloadError(f"Download failed: {e}") from e

    @staticmethod
    def _declared_length(response: aiohttp.ClientResponse) -> int | None:
        value = response.headers.get("Content-Length")
        if value is None:
            return None
        try:
            length = int(value)
        except ValueError:
            return None
        return length if length >= 0 else None

    async def _stream_to_memory(
        self,
        response: aiohttp.ClientResponse,
        declared: int | None,
        memory_limit: int,
        cancel_event: asyncio.Event | None,
        show_progress: bool,
        label: str,
    ) -> MemoryBuffer:
        data = io.BytesIO()
        with (
            logger.progress_context(),
            self._progress_bar(declared, label, show_progress) as pbar,
        ):
            async with contextlib.aclosing(
                self._iter_chunks(response, cancel_event)
            ) as chunks:
                async for chunk in chunks:
                    if data.tell() + len(chunk) > memory_limit:
                        raise DownloadTooLargeError(
                            f"Download exceeded memory limit of {memory_limit} bytes"
                        )
                    data.write(chunk)
                    pbar.update(len(chunk))

        self._check_complete(data.tell(), declared)
        # getvalue() hands over the internal buffer without copying
        return MemoryBuffer(data.getvalue())

    async def _stream_to_file(
        self,
        response: aiohttp.ClientResponse,
        declared: int | None,
        cancel_event: asyncio.Event | None,
        show_progress: bool,
        label: str,
    ) -> FileBuffer:
        fd, name = tempfile.mkstemp(prefix=TEMP_FILE_PREFIX, dir=self.temp_dir)
        path = Path(name)
        logger.debug("Streaming to temporary file: %s", path)
        received = 0
        try:
            with (
                os.fdopen(fd, "wb") as f,
                logger.progress_context(),
                self._progress_bar(declared, label, show_progress) as pbar,
            ):
                async with contextlib.aclosing(
                    self._iter_chunks(response, cancel_event)
                ) as chunks:
                    async for chunk in chunks:
                        f.write(chunk)
                        received += len(chunk)
                        pbar.update(len(chunk))
            self._check_complete(received, declared)
        except BaseException:
            # Covers failures, cancellation and interrupts alike
            path.unlink(missing_ok=True)
            raise

        return FileBuffer(path, received)

    async def _iter_chunks(
        self,
        response: aiohttp.ClientResponse,
        cancel_event: asyncio.Event | None,
    ) -> AsyncIterator[bytes]:
        chunks = response.content.iter_chunked(CHUNK_SIZE).__aiter__()
        while True:
            chunk = await self._next_chunk(chunks, cancel_event)
            if chunk is None:
                return
            if chunk:
                yield chunk

    async def _next_chunk(
        self,
        chunks: AsyncIterator[bytes],
        cancel_event: asyncio.Event | None,
    ) -> bytes | None:
        """Read one chunk, aborting the read if ``cancel_event`` fires."""
        try:
            if cancel_event is None:
                return await self._read_one(chunks)

            if cancel_event.is_set():
                raise DownloadCancelledError("Download cancelled")

            read = asyncio.ensure_future(self._read_one(chunks))
            cancelled = asyncio.ensure_future(cancel_event.wait())
            try:
                await asyncio.wait(
                    {read, cancelled}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                cancelled.cancel()
                if not read.done():
                    read.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await read

            if cancel_event.is_set():
                raise DownloadCancelledError("Download cancelled")
            return read.result()
        except (aiohttp.ClientError, TimeoutError) as e:
            raise DownloadError(f"Download interrupted: {e}") from e

    @staticmethod
    async def _read_one(chunks: AsyncIterator[bytes]) -> bytes | None:
        try:
            return await chunks.__anext__()
        except StopAsyncIteration:
            return None

    @staticmethod
    def _check_complete(received: int, declared: int | None) -> None:
        if declared is not None and received != declared:
            raise DownloadError(
                f"Download size mismatch: received {received} of {declared} bytes"
            )

    @staticmethod
    def _progress_bar(total: int | None, label: str, show: bool) -> tqdm:
        return tqdm(
            total=total,
            unit="B",
            unit_scale=True,
            desc=f"📥 {label}",
            leave=True,
            ncols=100,
            disable=not show or total is None,
        )
