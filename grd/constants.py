"""Centralized constants module for grd.

This module serves as the single source of truth for all shared constants
across the grd codebase. Constants are organized by logical categories
and use typing.Final annotations to ensure immutability.

Usage:
    from grd.constants import DEFAULT_MEMORY_LIMIT
"""

from typing import Final

# =============================================================================
# Configuration Constants
# =============================================================================

# Configuration version - single source of truth for config versioning
CONFIG_VERSION: Final[str] = "1.0.0"

# Configuration file name inside the config directory
CONFIG_FILE_NAME: Final[str] = "settings.conf"

# Default config directory name under the user's home directory
CONFIG_DIR_NAME: Final[str] = ".config"

# Application-specific subdirectory under the config directory
DEFAULT_CONFIG_SUBDIR: Final[str] = "grd"

# Environment variable overriding the config directory
CONFIG_DIR_ENV: Final[str] = "GRD_CONFIG_DIR"

# Configuration defaults
DEFAULT_MEMORY_LIMIT: Final[int] = 104857600  # 100 MiB
DEFAULT_DESTINATION: Final[str] = "."
DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final[str] = "WARNING"
DEFAULT_FILE_LOGGING: Final[bool] = False
DEFAULT_TIMEOUT_SECONDS: Final[int] = 30

# Config section and key names
SECTION_DEFAULT: Final[str] = "DEFAULT"
SECTION_NETWORK: Final[str] = "network"
SECTION_DIRECTORY: Final[str] = "directory"

KEY_CONFIG_VERSION: Final[str] = "config_version"
KEY_MEMORY_LIMIT: Final[str] = "memory_limit"
KEY_DESTINATION: Final[str] = "destination"
KEY_LOG_LEVEL: Final[str] = "log_level"
KEY_CONSOLE_LOG_LEVEL: Final[str] = "console_log_level"
KEY_FILE_LOGGING: Final[str] = "file_logging"
KEY_TIMEOUT_SECONDS: Final[str] = "timeout_seconds"

# Known directory keys expected in the directory section
DIRECTORY_KEYS: Final[tuple[str, ...]] = ("logs", "tmp")

# =============================================================================
# GitHub API Constants
# =============================================================================

GITHUB_API_BASE: Final[str] = "https://api.github.com"
GITHUB_WEB_HOST: Final[str] = "github.com"
GITHUB_ACCEPT_HEADER: Final[str] = "application/vnd.github+json"
USER_AGENT_PREFIX: Final[str] = "grd"

# Releases requested per page when listing
RELEASES_PER_PAGE: Final[int] = 100

# Environment variables consulted for a token, in order
TOKEN_ENV_VARS: Final[tuple[str, ...]] = ("GITHUB_TOKEN", "GH_TOKEN")

# Keyring service name used for a stored token
KEYRING_SERVICE_NAME: Final[str] = "grd-github-token"

# =============================================================================
# Download Constants
# =============================================================================

CHUNK_SIZE: Final[int] = 8192
TEMP_FILE_PREFIX: Final[str] = "grd-"

# =============================================================================
# Asset matching Constants
# =============================================================================

# Score awarded per dimension (OS, arch)
EXACT_MATCH_SCORE: Final[int] = 2
PARTIAL_MATCH_SCORE: Final[int] = 1

# Release assets that are never the binary itself
AUXILIARY_ASSET_SUFFIXES: Final[tuple[str, ...]] = (
    ".sha1",
    ".sha256",
    ".sha512",
    ".sha256sum",
    ".sha512sum",
    ".md5",
    ".sig",
    ".asc",
    ".pem",
    ".crt",
    ".sbom",
    ".spdx",
    ".spdx.json",
    ".intoto.jsonl",
    ".minisig",
)
AUXILIARY_ASSET_NAMES: Final[frozenset[str]] = frozenset(
    {
        "checksums.txt",
        "sha256sums",
        "sha256sums.txt",
        "sha512sums",
        "sha512sums.txt",
        "md5sums",
        "md5sums.txt",
    }
)

# =============================================================================
# Archive Constants
# =============================================================================

GZIP_MAGIC: Final[bytes] = b"\x1f\x8b"
ZIP_MAGICS: Final[tuple[bytes, ...]] = (b"PK\x03\x04", b"PK\x05\x06")
TAR_MAGIC: Final[bytes] = b"ustar"
TAR_MAGIC_OFFSET: Final[int] = 257

# Bytes inspected for format detection
FORMAT_SNIFF_SIZE: Final[int] = 512

# Extensions of archive formats grd knows about but cannot unpack
UNSUPPORTED_ARCHIVE_EXTENSIONS: Final[tuple[str, ...]] = (
    ".tar.xz",
    ".txz",
    ".tar.bz2",
    ".tbz2",
    ".tar.zst",
    ".xz",
    ".bz2",
    ".zst",
    ".7z",
    ".rar",
)

# Mode applied to produced executables
EXECUTABLE_MODE: Final[int] = 0o755

# =============================================================================
# Logging Constants
# =============================================================================

# Maximum size for rotated log files (bytes)
LOG_MAX_FILE_SIZE_BYTES: Final[int] = 1024 * 1024  # 1 MB

# Number of backup files to keep for rotated logs
LOG_BACKUP_COUNT: Final[int] = 3

LOG_FILE_NAME: Final[str] = "grd.log"

# Console and file format strings used by the logger
LOG_CONSOLE_FORMAT: Final[str] = "%(asctime)s - %(levelname)s - %(message)s"
LOG_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_FILE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(funcName)s:%(lineno)d - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Color mapping for console output levels
LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# =============================================================================
# Exit codes
# =============================================================================

EXIT_FAILURE: Final[int] = 1
EXIT_INTERRUPTED: Final[int] = 130
