"""Top-level package for grd, the GitHub release downloader."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("grd")
    # Handle None return in Python 3.13+ for uninstalled packages
    if __version__ is None:
        __version__ = "dev"
except PackageNotFoundError:
    # Fallback for development environments where package isn't installed
    __version__ = "dev"
