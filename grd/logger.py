"""Logging utilities for grd.

All loggers obtained through ``get_logger`` share one console handler and,
once enabled, one rotating file handler, so changing a level affects the
whole application. While a download progress bar is drawing, INFO and
WARNING records are held back and replayed when the bar finishes.
"""

import logging
import logging.handlers
import sys
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from grd.config import config_manager
from grd.constants import (
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    LOG_BACKUP_COUNT,
    LOG_COLORS,
    LOG_CONSOLE_DATE_FORMAT,
    LOG_CONSOLE_FORMAT,
    LOG_FILE_DATE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_MAX_FILE_SIZE_BYTES,
)

# One GrdLogger per name
_logger_instances: dict[str, "GrdLogger"] = {}
_logger_lock = threading.Lock()

_console_handler: logging.StreamHandler | None = None
_file_handler: logging.handlers.RotatingFileHandler | None = None
_previous_console_level: int | None = None


class ConfigurationError(Exception):
    """Raised when the log file cannot be opened."""


def _level_number(name: str, default: int) -> int:
    level = getattr(logging, name.upper(), None)
    return level if isinstance(level, int) else default


def _configured_console_level() -> int:
    try:
        name = config_manager.load_global_config()["console_log_level"]
    except (OSError, KeyError, ValueError):
        name = DEFAULT_CONSOLE_LOG_LEVEL
    return _level_number(name, logging.WARNING)


class ColoredFormatter(logging.Formatter):
    """Formatter coloring the level name for terminal output."""

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{color}{levelname}{LOG_COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _get_console_handler() -> logging.StreamHandler:
    """Return the shared console handler, creating it on first use."""
    global _console_handler  # noqa: PLW0603

    if _console_handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            ColoredFormatter(LOG_CONSOLE_FORMAT, datefmt=LOG_CONSOLE_DATE_FORMAT)
        )
        handler.setLevel(_configured_console_level())
        _console_handler = handler
    return _console_handler


class GrdLogger:
    """Wrapper around a stdlib logger sharing grd's handlers."""

    def __init__(self, name: str = "grd") -> None:
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        self._progress_active = False
        self._deferred: list[tuple[int, str, tuple[Any, ...], dict[str, Any]]] = []

        if not self.logger.handlers:
            self.logger.addHandler(_get_console_handler())
            if _file_handler is not None:
                self.logger.addHandler(_file_handler)

    def setup_file_logging(
        self, log_file: Path, level: str = DEFAULT_LOG_LEVEL
    ) -> None:
        """Enable the rotating log file for every grd logger."""
        setup_file_logging(log_file, level)

    def set_console_level(self, level: str) -> None:
        """Set console logging level.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

        """
        _get_console_handler().setLevel(_level_number(level, logging.WARNING))

    def set_console_level_temporarily(self, level: str) -> None:
        """Change the console level until ``restore_console_level``."""
        global _previous_console_level  # noqa: PLW0603

        if _previous_console_level is None:
            _previous_console_level = _get_console_handler().level
        self.set_console_level(level)

    def restore_console_level(self) -> None:
        """Undo ``set_console_level_temporarily``."""
        global _previous_console_level  # noqa: PLW0603

        if _previous_console_level is not None:
            _get_console_handler().setLevel(_previous_console_level)
        _previous_console_level = None

    def _emit(self, level: int, message: str, args: tuple, kwargs: dict) -> None:
        if not self.logger.isEnabledFor(level):
            return
        if self._progress_active:
            self._deferred.append((level, message, args, kwargs))
        else:
            self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.INFO, message, args, kwargs)

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        self._emit(logging.WARNING, message, args, kwargs)

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        self.logger.error(message, *args, **kwargs)

    def exception(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log an error with the current traceback."""
        self.logger.exception(message, *args, **kwargs)

    @contextmanager
    def progress_context(self) -> Generator[None, None, None]:
        """Hold back INFO and WARNING records while a progress bar draws.

        Debug and error records pass straight through.
        """
        outer = self._progress_active
        self._progress_active = True
        try:
            yield
        finally:
            self._progress_active = outer
            if not outer:
                pending, self._deferred = self._deferred, []
                for level, message, args, kwargs in pending:
                    self.logger.log(level, message, *args, **kwargs)


def setup_file_logging(log_file: Path, level: str = DEFAULT_LOG_LEVEL) -> None:
    """Attach a rotating file handler to every grd logger.

    Calling it again only adjusts the level of the existing handler.

    Args:
        log_file: Path to log file
        level: Logging level for file output

    Raises:
        ConfigurationError: If the log file cannot be opened

    """
    global _file_handler  # noqa: PLW0603

    numeric_level = _level_number(level, logging.INFO)
    with _logger_lock:
        if _file_handler is not None:
            _file_handler.setLevel(numeric_level)
            return

        try:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=LOG_MAX_FILE_SIZE_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as e:
            raise ConfigurationError(f"Cannot open log file {log_file}: {e}") from e

        handler.setFormatter(
            logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_FILE_DATE_FORMAT)
        )
        handler.setLevel(numeric_level)
        _file_handler = handler

        for instance in _logger_instances.values():
            instance.logger.addHandler(handler)


def get_logger(name: str = "grd") -> GrdLogger:
    """Return the shared GrdLogger for ``name``."""
    with _logger_lock:
        if name not in _logger_instances:
            _logger_instances[name] = GrdLogger(name)
        return _logger_instances[name]
