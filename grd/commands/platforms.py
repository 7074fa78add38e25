"""Supported platform listing command."""

from argparse import Namespace

from ..platform import supported_platforms
from .base import BaseCommandHandler


class PlatformsHandler(BaseCommandHandler):
    """Handler for ``--list-platforms``."""

    async def execute(self, args: Namespace) -> None:
        print("Supported platforms:")
        for platform in supported_platforms():
            print(f"  {platform}")
