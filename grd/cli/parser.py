"""CLI argument parser for grd.

This module handles the parsing of command-line arguments. Defaults for
the destination and memory limit come from the global configuration, and
flags given on the command line always win.
"""

import argparse
from argparse import Namespace
from collections.abc import Sequence

from .. import __version__
from ..config import GlobalConfig


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive number: {value}")
    return number


class CLIParser:
    """Command-line argument parser for grd."""

    def __init__(self, global_config: GlobalConfig) -> None:
        """Initialize the CLI parser with global configuration.

        Args:
            global_config: Global configuration supplying option defaults

        """
        self.global_config = global_config

    def parse_args(self, argv: Sequence[str] | None = None) -> Namespace:
        """Parse command-line arguments.

        Args:
            argv: Arguments to parse; ``sys.argv[1:]`` if None

        Returns:
            Parsed arguments namespace

        """
        parser = self._create_main_parser()
        self._add_download_options(parser)
        self._add_platform_options(parser)
        self._add_general_options(parser)
        args = parser.parse_args(argv)

        if not args.repo and not (args.list_platforms or args.init_config):
            parser.error("the following arguments are required: repo")
        return args

    def _create_main_parser(self) -> argparse.ArgumentParser:
        """Create the main argument parser.

        Returns:
            The configured main ArgumentParser instance

        """
        parser = argparse.ArgumentParser(
            prog="grd",
            description="Download the right GitHub release binary for this machine",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Install the latest release for this machine into the current directory
  %(prog)s BurntSushi/ripgrep --first

  # Pick a tag, destination and binary name
  %(prog)s https://github.com/cli/cli -t v2.40.0 -d ~/.local/bin -b gh

  # Skip musl builds, target another platform
  %(prog)s owner/repo --exclude musl --os linux --arch arm64

  # Other commands
  %(prog)s owner/repo --list     # Show available releases
  %(prog)s --list-platforms      # Show supported platforms
            """,
        )
        parser.add_argument(
            "repo",
            nargs="?",
            help="GitHub repository as owner/repo or https://github.com/owner/repo",
        )
        return parser

    def _add_download_options(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-t",
            "--tag",
            help="Release tag to download (default: latest release)",
        )
        parser.add_argument(
            "-l",
            "--list",
            action="store_true",
            help="List available releases instead of downloading",
        )
        parser.add_argument(
            "-d",
            "--destination",
            default=self.global_config["destination"],
            help="Destination directory (default: %(default)s)",
        )
        parser.add_argument(
            "-b",
            "--bin-name",
            help="Executable name (default: repository name)",
        )
        parser.add_argument(
            "--first",
            action="store_true",
            help="Take the best matching asset without prompting",
        )
        parser.add_argument(
            "--exclude",
            help="Comma-separated words; assets containing any are skipped",
        )
        parser.add_argument(
            "--no-decompress",
            action="store_true",
            help="Save the asset as downloaded, without extracting it",
        )
        parser.add_argument(
            "-m",
            "--memory-limit",
            type=_positive_int,
            default=self.global_config["memory_limit"],
            help="Largest download in bytes kept in memory; bigger ones use "
            "a temp file (default: %(default)s)",
        )

    def _add_platform_options(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--os",
            help="Target OS: linux, macos, windows (default: this machine)",
        )
        parser.add_argument(
            "--arch",
            help="Target architecture: x86_64, aarch64 (default: this machine)",
        )
        parser.add_argument(
            "--list-platforms",
            action="store_true",
            help="List supported platform combinations",
        )

    def _add_general_options(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--token",
            help="GitHub token (default: GITHUB_TOKEN, GH_TOKEN or keyring)",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show debug output",
        )
        parser.add_argument(
            "--init-config",
            action="store_true",
            help="Write the settings file with default values",
        )
        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {__version__}",
        )
