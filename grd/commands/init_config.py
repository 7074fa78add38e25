"""Command writing the settings file."""

from argparse import Namespace

from ..logger import get_logger
from .base import BaseCommandHandler

logger = get_logger(__name__)


class InitConfigHandler(BaseCommandHandler):
    """Handler for ``--init-config``.

    Writes the currently effective settings, so an existing file keeps its
    values and gains any missing keys.
    """

    async def execute(self, args: Namespace) -> None:
        settings_file = self.config_manager.save_global_config(self.global_config)
        logger.info("Settings written to %s", settings_file)
        print(f"✅ Settings written to {settings_file}")
