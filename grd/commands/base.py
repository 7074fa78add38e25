"""Base command handler for grd CLI commands.

This module provides the abstract base class that all command handlers inherit from,
ensuring consistent interface and shared functionality across commands.
"""

from abc import ABC, abstractmethod
from argparse import Namespace

import aiohttp

from ..auth import GitHubAuthManager
from ..config import ConfigManager
from ..github_client import build_user_agent, parse_repository
from ..logger import get_logger

logger = get_logger(__name__)


class BaseCommandHandler(ABC):
    """Abstract base class for all command handlers.

    This class provides common functionality and enforces a consistent
    interface for all command implementations.
    """

    def __init__(self, config_manager: ConfigManager) -> None:
        """Initialize the command handler with shared dependencies.

        Args:
            config_manager: Configuration management instance

        """
        self.config_manager = config_manager
        self.global_config = config_manager.load_global_config()

    @abstractmethod
    async def execute(self, args: Namespace) -> None:
        """Execute the command with the given arguments.

        Args:
            args: Parsed command-line arguments

        This method must be implemented by all concrete command handlers.

        """

    def _create_auth_manager(self, args: Namespace) -> GitHubAuthManager:
        """Create the auth manager, preferring a token given on the CLI."""
        return GitHubAuthManager(token=getattr(args, "token", None))

    def _create_session(self) -> aiohttp.ClientSession:
        """Create the HTTP session shared by API calls and downloads.

        Only connect and read timeouts apply, so large downloads are not cut
        off while data keeps flowing.
        """
        timeout_seconds = self.global_config["network"]["timeout_seconds"]
        timeout = aiohttp.ClientTimeout(
            total=None, sock_connect=timeout_seconds, sock_read=timeout_seconds
        )
        return aiohttp.ClientSession(
            timeout=timeout, headers={"User-Agent": build_user_agent()}
        )

    @staticmethod
    def _parse_repository(args: Namespace) -> tuple[str, str]:
        owner, repo = parse_repository(args.repo)
        logger.debug("Repository: %s/%s", owner, repo)
        return owner, repo
