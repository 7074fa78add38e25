"""Selection of exactly one asset out of the ranked candidates.

The interactive choice goes through the ``Prompt`` protocol, so the
resolver never touches the console directly.
"""

from collections.abc import Sequence
from typing import Protocol

from .exceptions import NoMatchingAssetError, SelectionCancelledError
from .github_client import Asset
from .logger import get_logger
from .matcher import MatchCandidate
from .utils import format_size

logger = get_logger(__name__)

ABORT_ANSWERS = frozenset({"q", "quit", "exit"})


class Prompt(Protocol):
    """Capability used to ask the user for a choice."""

    def show(self, lines: Sequence[str]) -> None:
        """Display informational lines."""

    def ask(self, question: str) -> str | None:
        """Ask a question and return the answer, or None when aborted."""


class ConsolePrompt:
    """Prompt reading from stdin and writing to stdout."""

    def show(self, lines: Sequence[str]) -> None:
        for line in lines:
            print(line)

    def ask(self, question: str) -> str | None:
        try:
            return input(question)
        except EOFError:
            return None


class SelectionResolver:
    """Turns a ranked candidate list into a single asset."""

    def __init__(self, prompt: Prompt | None = None) -> None:
        """Initialize the resolver.

        Args:
            prompt: Capability used when a choice is needed; defaults to
                the console

        """
        self.prompt = prompt or ConsolePrompt()

    def resolve(
        self, candidates: Sequence[MatchCandidate], first: bool = False
    ) -> Asset:
        """Return exactly one asset or fail.

        Args:
            candidates: Candidates ordered from highest confidence
            first: Take the top candidate without asking

        Returns:
            The chosen asset

        Raises:
            NoMatchingAssetError: If there are no candidates
            SelectionCancelledError: If the user aborts the choice

        """
        if not candidates:
            raise NoMatchingAssetError("No candidate assets to choose from")

        if first or len(candidates) == 1:
            chosen = candidates[0].asset
            logger.debug("Selected top candidate without prompting: %s", chosen.name)
            return chosen

        return self._ask_user(candidates)

    def _ask_user(self, candidates: Sequence[MatchCandidate]) -> Asset:
        count = len(candidates)
        self.prompt.show(
            ["Multiple assets found. Select one:"]
            + [
                f"{number}. {c.asset.name} ({format_size(c.asset.size_bytes)})"
                for number, c in enumerate(candidates, start=1)
            ]
        )

        while True:
            try:
                answer = self.prompt.ask(f"Enter choice (1-{count}, q to quit): ")
            except KeyboardInterrupt as e:
                raise SelectionCancelledError("Asset selection cancelled") from e

            if answer is None or answer.strip().lower() in ABORT_ANSWERS:
                raise SelectionCancelledError("Asset selection cancelled")

            try:
                choice = int(answer.strip())
            except ValueError:
                choice = 0

            if 1 <= choice <= count:
                chosen = candidates[choice - 1].asset
                logger.debug("User selected asset: %s", chosen.name)
                return chosen

            self.prompt.show([f"Invalid choice. Enter a number between 1 and {count}."])
