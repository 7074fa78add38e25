"""Configuration management for grd.

This module handles the global INI configuration (``settings.conf``). It
provides path resolution, typed access and default values. Command-line
flags always take precedence over the values loaded here.
"""

import configparser
import os
from pathlib import Path
from typing import TypedDict

from grd.constants import (
    CONFIG_DIR_ENV,
    CONFIG_DIR_NAME,
    CONFIG_FILE_NAME,
    CONFIG_VERSION,
    DEFAULT_CONFIG_SUBDIR,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_DESTINATION,
    DEFAULT_FILE_LOGGING,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MEMORY_LIMIT,
    DEFAULT_TIMEOUT_SECONDS,
    DIRECTORY_KEYS,
    KEY_CONFIG_VERSION,
    KEY_CONSOLE_LOG_LEVEL,
    KEY_DESTINATION,
    KEY_FILE_LOGGING,
    KEY_LOG_LEVEL,
    KEY_MEMORY_LIMIT,
    KEY_TIMEOUT_SECONDS,
    SECTION_DEFAULT,
    SECTION_DIRECTORY,
    SECTION_NETWORK,
)


class NetworkConfig(TypedDict):
    """Network configuration options."""

    timeout_seconds: int


class DirectoryConfig(TypedDict):
    """Directory paths configuration.

    ``tmp`` is None when temporary files go to the platform temp area.
    """

    logs: Path
    tmp: Path | None


class GlobalConfig(TypedDict):
    """Global application configuration."""

    config_version: str
    memory_limit: int
    destination: str
    log_level: str
    console_log_level: str
    file_logging: bool
    network: NetworkConfig
    directory: DirectoryConfig


class DirectoryManager:
    """Manages directory operations and path resolution."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize directory manager.

        Args:
            config_dir: Optional custom config directory. Defaults to
                ``$GRD_CONFIG_DIR`` or ``~/.config/grd/``.

        """
        self._config_dir_override = config_dir

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        if self._config_dir_override is not None:
            return self._config_dir_override
        env_dir = os.environ.get(CONFIG_DIR_ENV)
        if env_dir:
            return self.expand_path(env_dir)
        return Path.home() / CONFIG_DIR_NAME / DEFAULT_CONFIG_SUBDIR

    @property
    def settings_file(self) -> Path:
        """Get the settings file path."""
        return self.config_dir / CONFIG_FILE_NAME

    def expand_path(self, path_str: str) -> Path:
        """Expand and resolve path with ~ and relative path support.

        Args:
            path_str: Path string to expand

        Returns:
            Expanded and resolved Path

        """
        return Path(path_str).expanduser().resolve()


class GlobalConfigManager:
    """Manages global INI configuration."""

    def __init__(self, directory_manager: DirectoryManager) -> None:
        """Initialize global config manager.

        Args:
            directory_manager: Directory manager for path operations

        """
        self.directory_manager = directory_manager

    def get_default_global_config(self) -> dict[str, str | dict[str, str]]:
        """Get default global configuration values.

        Returns:
            Default configuration dictionary

        """
        return {
            KEY_CONFIG_VERSION: CONFIG_VERSION,
            KEY_MEMORY_LIMIT: str(DEFAULT_MEMORY_LIMIT),
            KEY_DESTINATION: DEFAULT_DESTINATION,
            KEY_LOG_LEVEL: DEFAULT_LOG_LEVEL,
            KEY_CONSOLE_LOG_LEVEL: DEFAULT_CONSOLE_LOG_LEVEL,
            KEY_FILE_LOGGING: str(DEFAULT_FILE_LOGGING).lower(),
            SECTION_NETWORK: {
                KEY_TIMEOUT_SECONDS: str(DEFAULT_TIMEOUT_SECONDS)
            },
            SECTION_DIRECTORY: {
                "logs": str(self.directory_manager.config_dir / "logs"),
                "tmp": "",
            },
        }

    def load_global_config(self) -> GlobalConfig:
        """Load global configuration from INI file.

        A missing settings file is not created; defaults are returned.

        Returns:
            Loaded global configuration

        """
        config = configparser.ConfigParser()

        defaults = self.get_default_global_config()
        flat_defaults = {
            key: str(value)
            for key, value in defaults.items()
            if not isinstance(value, dict)
        }
        config.read_dict({SECTION_DEFAULT: flat_defaults})

        for key, value in defaults.items():
            if isinstance(value, dict):
                config.add_section(key)
                for subkey, subvalue in value.items():
                    config.set(key, subkey, str(subvalue))

        settings_file = self.directory_manager.settings_file
        if settings_file.exists():
            config.read(settings_file, encoding="utf-8")

        return self._convert_to_global_config(config)

    def save_global_config(self, config: GlobalConfig) -> Path:
        """Save global configuration to INI file.

        Args:
            config: Global configuration to save

        Returns:
            Path of the written settings file

        """
        parser = configparser.ConfigParser()

        parser[SECTION_DEFAULT] = {
            KEY_CONFIG_VERSION: config["config_version"],
            KEY_MEMORY_LIMIT: str(config["memory_limit"]),
            KEY_DESTINATION: config["destination"],
            KEY_LOG_LEVEL: config["log_level"],
            KEY_CONSOLE_LOG_LEVEL: config["console_log_level"],
            KEY_FILE_LOGGING: str(config["file_logging"]).lower(),
        }
        parser[SECTION_NETWORK] = {
            KEY_TIMEOUT_SECONDS: str(config["network"]["timeout_seconds"]),
        }
        parser[SECTION_DIRECTORY] = {
            key: "" if path is None else str(path)
            for key, path in config["directory"].items()
        }

        settings_file = self.directory_manager.settings_file
        settings_file.parent.mkdir(parents=True, exist_ok=True)
        with open(settings_file, "w", encoding="utf-8") as f:
            parser.write(f)
        return settings_file

    def _convert_to_global_config(
        self, config: configparser.ConfigParser
    ) -> GlobalConfig:
        """Convert configparser to typed GlobalConfig.

        Args:
            config: Configuration to convert

        Returns:
            Typed global configuration

        """
        defaults = config.defaults()

        def get_int(value: str | None, default: int) -> int:
            try:
                number = int(str(value).strip())
            except (TypeError, ValueError):
                return default
            # Limits and timeouts must be positive
            return number if number > 0 else default

        # Only keys explicitly set in the section, not inherited from DEFAULT
        directory_section: dict[str, str] = {}
        if config.has_section(SECTION_DIRECTORY):
            directory_section = {
                key: config.get(SECTION_DIRECTORY, key)
                for key in config.options(SECTION_DIRECTORY)
                if key in DIRECTORY_KEYS
            }

        logs_value = directory_section.get("logs", "").strip()
        tmp_value = directory_section.get("tmp", "").strip()

        timeout = DEFAULT_TIMEOUT_SECONDS
        if config.has_section(SECTION_NETWORK):
            timeout = get_int(
                config.get(SECTION_NETWORK, KEY_TIMEOUT_SECONDS, fallback=None),
                DEFAULT_TIMEOUT_SECONDS,
            )

        file_logging = (
            defaults.get(KEY_FILE_LOGGING, "false").strip().lower() == "true"
        )

        return GlobalConfig(
            config_version=defaults.get(KEY_CONFIG_VERSION, CONFIG_VERSION),
            memory_limit=get_int(
                defaults.get(KEY_MEMORY_LIMIT), DEFAULT_MEMORY_LIMIT
            ),
            destination=defaults.get(KEY_DESTINATION, DEFAULT_DESTINATION)
            or DEFAULT_DESTINATION,
            log_level=defaults.get(KEY_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
            console_log_level=defaults.get(
                KEY_CONSOLE_LOG_LEVEL, DEFAULT_CONSOLE_LOG_LEVEL
            ).upper(),
            file_logging=file_logging,
            network=NetworkConfig(timeout_seconds=timeout),
            directory=DirectoryConfig(
                logs=self.directory_manager.expand_path(logs_value)
                if logs_value
                else self.directory_manager.config_dir / "logs",
                tmp=self.directory_manager.expand_path(tmp_value)
                if tmp_value
                else None,
            ),
        )


class ConfigManager:
    """Facade that coordinates configuration managers."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Optional custom config directory.

        """
        self.directory_manager = DirectoryManager(config_dir)
        self.global_config_manager = GlobalConfigManager(
            self.directory_manager
        )

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        return self.directory_manager.config_dir

    @property
    def settings_file(self) -> Path:
        """Get the settings file path."""
        return self.directory_manager.settings_file

    def load_global_config(self) -> GlobalConfig:
        """Load global configuration from INI file."""
        return self.global_config_manager.load_global_config()

    def save_global_config(self, config: GlobalConfig) -> Path:
        """Save global configuration to INI file."""
        return self.global_config_manager.save_global_config(config)


# Global instance for easy access
config_manager = ConfigManager()
