"""Install command: fetch a release asset and place its executable.

Runs the whole pipeline for one repository: release lookup, asset
matching, selection, bounded download and extraction.
"""

import asyncio
import contextlib
import signal
import sys
from argparse import Namespace
from collections.abc import Callable, Iterator
from pathlib import Path

from ..config import ConfigManager
from ..exceptions import error_context
from ..github_client import Asset, ReleaseAPIClient
from ..logger import get_logger
from ..matcher import match_assets
from ..platform import PlatformDescriptor, resolve
from ..selector import SelectionResolver
from ..services.download import DownloadBuffer, DownloadService
from ..services.extract import ArchiveExtractor
from ..utils import format_size, split_terms
from .base import BaseCommandHandler

logger = get_logger(__name__)


@contextlib.contextmanager
def cancel_on_interrupt(event: asyncio.Event) -> Iterator[None]:
    """Set ``event`` on SIGINT while the block runs.

    Where the running loop has no signal support (Windows, non-main
    threads) SIGINT keeps raising KeyboardInterrupt instead.
    """
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, event.set)
    except (NotImplementedError, RuntimeError, ValueError):
        yield
        return
    try:
        yield
    finally:
        loop.remove_signal_handler(signal.SIGINT)


class InstallHandler(BaseCommandHandler):
    """Handler for downloading and installing a release binary."""

    def __init__(
        self,
        config_manager: ConfigManager,
        resolver: SelectionResolver | None = None,
        extractor_factory: Callable[[PlatformDescriptor], ArchiveExtractor] = ArchiveExtractor,
    ) -> None:
        """Initialize the install handler.

        Args:
            config_manager: Configuration management instance
            resolver: Asset selection resolver; prompts on the console if None
            extractor_factory: Builds the extractor for the target platform

        """
        super().__init__(config_manager)
        self.resolver = resolver or SelectionResolver()
        self.extractor_factory = extractor_factory

    async def execute(self, args: Namespace) -> None:
        """Execute the install command."""
        owner, repo = self._parse_repository(args)
        repository = f"{owner}/{repo}"
        platform = resolve(args.os, args.arch)
        destination = Path(args.destination).expanduser()
        exclude_terms = split_terms(args.exclude)

        with error_context(repository=repository, tag=args.tag):
            async with self._create_session() as session:
                auth_manager = self._create_auth_manager(args)
                client = ReleaseAPIClient(session, auth_manager)
                release = await client.get_release(owner, repo, args.tag)
                print(f"Selected version: {release.tag}")

                if args.os is None and args.arch is None:
                    print(f"Detected platform: {platform}")
                else:
                    print(f"Using platform: {platform}")

                with error_context(tag=release.tag):
                    candidates = match_assets(release.assets, platform, exclude_terms)
                    asset = self.resolver.resolve(candidates, first=args.first)
                    print(
                        f"Selected asset: {asset.name} "
                        f"({format_size(asset.size_bytes)})"
                    )

                    with error_context(asset=asset.name):
                        downloader = DownloadService(
                            session,
                            auth_manager,
                            temp_dir=self._temp_dir(),
                        )
                        buffer = await self._download(downloader, asset, args.memory_limit)
                        output = self.extractor_factory(platform).extract(
                            buffer,
                            asset.name,
                            destination,
                            bin_name=args.bin_name,
                            default_name=repo,
                            no_decompress=args.no_decompress,
                        )

        logger.info("Installed %s from %s %s", output, repository, release.tag)
        print(f"✅ Successfully installed '{output.name}' to {output.parent}")

    async def _download(
        self, downloader: DownloadService, asset: Asset, memory_limit: int
    ) -> DownloadBuffer:
        print("Downloading...")
        cancel_event = asyncio.Event()
        with cancel_on_interrupt(cancel_event):
            return await downloader.download(
                asset.download_url,
                memory_limit,
                cancel_event=cancel_event,
                show_progress=sys.stderr.isatty(),
                label=asset.name,
            )

    def _temp_dir(self) -> Path | None:
        tmp_dir = self.global_config["directory"]["tmp"]
        if tmp_dir is not None:
            tmp_dir.mkdir(parents=True, exist_ok=True)
        return tmp_dir
