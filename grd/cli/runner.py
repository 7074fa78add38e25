"""CLI runner for grd.

This module orchestrates the execution of CLI commands by routing
parsed arguments to the appropriate command handlers, and turns grd
errors into process exit codes.
"""

import sys
from argparse import Namespace
from collections.abc import Sequence

from ..commands.base import BaseCommandHandler
from ..commands.init_config import InitConfigHandler
from ..commands.install import InstallHandler
from ..commands.platforms import PlatformsHandler
from ..commands.releases import ReleasesHandler
from ..config import ConfigManager
from ..constants import EXIT_FAILURE, EXIT_INTERRUPTED, LOG_FILE_NAME
from ..exceptions import GrdError
from ..logger import ConfigurationError, get_logger
from .parser import CLIParser

logger = get_logger(__name__)


class CLIRunner:
    """CLI command runner and orchestrator."""

    def __init__(self, config_manager: ConfigManager | None = None) -> None:
        """Initialize CLI runner with shared dependencies.

        Args:
            config_manager: Configuration manager; the default location
                if None

        """
        self.config_manager = config_manager or ConfigManager()
        self.global_config = self.config_manager.load_global_config()

        # Setup file logging
        self._setup_file_logging()

        # Initialize command handlers
        self._init_command_handlers()

    def _setup_file_logging(self) -> None:
        """Setup file logging based on global configuration."""
        if not self.global_config["file_logging"]:
            return
        log_file = self.global_config["directory"]["logs"] / LOG_FILE_NAME
        try:
            logger.setup_file_logging(log_file, self.global_config["log_level"])
        except ConfigurationError as e:
            logger.warning("File logging disabled: %s", e)

    def _init_command_handlers(self) -> None:
        """Initialize all command handlers with shared dependencies."""
        self.command_handlers: dict[str, BaseCommandHandler] = {
            "install": InstallHandler(self.config_manager),
            "releases": ReleasesHandler(self.config_manager),
            "platforms": PlatformsHandler(self.config_manager),
            "init-config": InitConfigHandler(self.config_manager),
        }

    async def run(self, argv: Sequence[str] | None = None) -> None:
        """Run the CLI application.

        Exits with the error's exit code when a grd error is raised.

        Args:
            argv: Arguments to parse; ``sys.argv[1:]`` if None

        """
        try:
            parser = CLIParser(self.global_config)
            args = parser.parse_args(argv)

            await self._execute_command(args)

        except GrdError as e:
            logger.error("%s", e)
            print(f"❌ {e}", file=sys.stderr)
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            print("\n⏹️  Operation cancelled by user", file=sys.stderr)
            sys.exit(EXIT_INTERRUPTED)
        except Exception as e:
            logger.exception("Unexpected error: %s", e)
            print(f"❌ Unexpected error: {e}", file=sys.stderr)
            sys.exit(EXIT_FAILURE)

    @staticmethod
    def _command_for(args: Namespace) -> str:
        if args.list_platforms:
            return "platforms"
        if args.init_config:
            return "init-config"
        if args.list:
            return "releases"
        return "install"

    async def _execute_command(self, args: Namespace) -> None:
        """Execute the selected command with its handler."""
        handler = self.command_handlers[self._command_for(args)]

        # Set verbose logging if requested
        if args.verbose:
            logger.set_console_level_temporarily("DEBUG")

        try:
            await handler.execute(args)
        finally:
            # Restore normal logging level
            if args.verbose:
                logger.restore_console_level()
