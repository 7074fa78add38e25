"""Exception classes for grd operations.

Every error carries the repository, tag and asset it relates to when known,
so the message printed by the CLI is actionable on its own. Each kind maps
to a distinct process exit code.
"""

from collections.abc import Iterator
from contextlib import contextmanager


class GrdError(Exception):
    """Base class for all grd errors."""

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        repository: str | None = None,
        tag: str | None = None,
        asset: str | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Error message describing the failure.
            repository: Optional ``owner/repo`` the error relates to.
            tag: Optional release tag the error relates to.
            asset: Optional asset name the error relates to.

        """
        super().__init__(message)
        self.message = message
        self.repository = repository
        self.tag = tag
        self.asset = asset

    def __str__(self) -> str:
        """Return string representation of the error.

        Returns:
            Formatted error message with context if available.

        """
        context = [
            f"{label} '{value}'"
            for label, value in (
                ("repository", self.repository),
                ("tag", self.tag),
                ("asset", self.asset),
            )
            if value
        ]
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class InvalidRepositoryError(GrdError):
    """Raised when a repository reference cannot be parsed."""

    exit_code = 2


class NotFoundError(GrdError):
    """Raised when the repository or release tag does not exist."""

    exit_code = 3


class RateLimitedError(GrdError):
    """Raised when the GitHub API throttles the caller."""

    exit_code = 4


class NetworkError(GrdError):
    """Raised on transport failures or unexpected API responses."""

    exit_code = 5


class NoMatchingAssetError(GrdError):
    """Raised when no release asset is usable for the target platform."""

    exit_code = 6


class SelectionCancelledError(GrdError):
    """Raised when the user aborts the interactive asset choice."""

    exit_code = 7


class DownloadError(GrdError):
    """Raised when an asset download fails."""

    exit_code = 8


class DownloadTooLargeError(DownloadError):
    """Raised when an in-memory download outgrows the memory limit."""


class DownloadCancelledError(DownloadError):
    """Raised when a download is interrupted by a cancellation signal."""


class AmbiguousArchiveContentsError(GrdError):
    """Raised when the binary inside an archive cannot be told apart."""

    exit_code = 9


class UnsupportedArchiveFormatError(GrdError):
    """Raised for archive formats grd cannot unpack."""

    exit_code = 10


class FilesystemError(GrdError):
    """Raised when writing to the destination fails."""

    exit_code = 11


@contextmanager
def error_context(
    repository: str | None = None,
    tag: str | None = None,
    asset: str | None = None,
) -> Iterator[None]:
    """Fill in missing context on grd errors raised inside the block.

    Example:
        with error_context(repository="octo/cli", tag="v1.0.0"):
            candidates = match_assets(release.assets, platform, exclude)

    """
    try:
        yield
    except GrdError as e:
        e.repository = e.repository or repository
        e.tag = e.tag or tag
        e.asset = e.asset or asset
        raise
