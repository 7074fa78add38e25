"""Release listing command."""

from argparse import Namespace

from ..exceptions import error_context
from ..github_client import Release, ReleaseAPIClient
from ..logger import get_logger
from .base import BaseCommandHandler

logger = get_logger(__name__)


def describe_release(release: Release) -> str:
    """One-line summary of a release for the listing."""
    markers = []
    if release.is_draft:
        markers.append("draft")
    if release.is_prerelease:
        markers.append("prerelease")
    line = f"  - {release.tag}"
    if release.published_at is not None:
        line += f" ({release.published_at:%Y-%m-%d})"
    if markers:
        line += f" [{', '.join(markers)}]"
    return line


class ReleasesHandler(BaseCommandHandler):
    """Handler for listing a repository's releases, newest first."""

    async def execute(self, args: Namespace) -> None:
        """Execute the release listing."""
        owner, repo = self._parse_repository(args)
        repository = f"{owner}/{repo}"

        count = 0
        with error_context(repository=repository):
            async with self._create_session() as session:
                client = ReleaseAPIClient(session, self._create_auth_manager(args))
                async for release in client.list_releases(owner, repo):
                    if count == 0:
                        print(f"Available releases for {repository}:")
                    print(describe_release(release))
                    count += 1

        if count == 0:
            print(f"No releases found for {repository}")
        logger.debug("Listed %d releases for %s", count, repository)
