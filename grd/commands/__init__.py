"""Command handlers for grd CLI.

This module contains all command handler implementations that provide
the core functionality for each CLI command.
"""

from .base import BaseCommandHandler
from .init_config import InitConfigHandler
from .install import InstallHandler
from .platforms import PlatformsHandler
from .releases import ReleasesHandler

__all__ = [
    "BaseCommandHandler",
    "InitConfigHandler",
    "InstallHandler",
    "PlatformsHandler",
    "ReleasesHandler",
]
