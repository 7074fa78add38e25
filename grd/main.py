"""Main CLI entry point for grd, the GitHub release downloader.

This module provides the minimal entry point for the command-line
interface, delegating all functionality to specialized command
handlers and CLI components.
"""

import sys

import uvloop

from .cli import CLIRunner
from .constants import EXIT_INTERRUPTED


async def async_main() -> None:
    """Run the CLI asynchronously.

    Initialize the CLI runner and execute the command.
    """
    runner = CLIRunner()
    await runner.run()


def main() -> None:
    """Run the CLI application.

    Run the CLI asynchronously on a uvloop event loop.
    """
    try:
        # Use uvloop for better async performance
        uvloop.run(async_main())
    except KeyboardInterrupt:
        print("\n⏹️  Operation cancelled by user", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    main()
