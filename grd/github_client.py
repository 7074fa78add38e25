"""GitHub API client for fetching release information and assets.

This module handles communication with the GitHub REST API to fetch
release listings and single releases. Upstream failures are translated
into the grd error taxonomy; nothing is retried.
"""

import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import quote, urlparse

import aiohttp
import orjson

from . import __version__
from .auth import GitHubAuthManager
from .constants import (
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_BASE,
    GITHUB_WEB_HOST,
    RELEASES_PER_PAGE,
    USER_AGENT_PREFIX,
)
from .exceptions import (
    InvalidRepositoryError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
)
from .logger import get_logger
from .utils import parse_timestamp

logger = get_logger(__name__)

# Constants
HTTP_FORBIDDEN = 403
HTTP_NOT_FOUND = 404
HTTP_TOO_MANY_REQUESTS = 429

_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(slots=True, frozen=True)
class Asset:
    """Represents a GitHub release asset.

    Attributes:
        name: Asset filename
        download_url: Direct download URL for the asset
        size_bytes: Asset size in bytes
        content_type: MIME type reported by GitHub

    """

    name: str
    download_url: str
    size_bytes: int = 0
    content_type: str = ""

    @classmethod
    def from_api_response(cls, asset_data: dict[str, Any]) -> "Asset | None":
        """Create Asset from GitHub API response data.

        Args:
            asset_data: Raw asset data from GitHub API

        Returns:
            Asset instance or None if required fields are missing

        """
        try:
            name = asset_data.get("name") or ""
            download_url = asset_data.get("browser_download_url") or ""
            if not name or not download_url:
                return None

            return cls(
                name=name,
                download_url=download_url,
                size_bytes=int(asset_data.get("size") or 0),
                content_type=asset_data.get("content_type") or "",
            )
        except (AttributeError, TypeError, ValueError):
            return None


@dataclass(slots=True, frozen=True)
class Release:
    """Represents a GitHub release with its metadata and assets.

    Attributes:
        tag: Tag name the release is identified by
        name: Release title (falls back to the tag)
        assets: Release assets in API order
        is_draft: Whether this is a draft release
        is_prerelease: Whether this is a prerelease
        published_at: Publication time, None for unpublished drafts

    """

    tag: str
    name: str
    assets: tuple[Asset, ...]
    is_draft: bool = False
    is_prerelease: bool = False
    published_at: datetime | None = None

    @classmethod
    def from_api_response(cls, api_data: dict[str, Any]) -> "Release":
        """Create Release from GitHub API response data.

        Args:
            api_data: Raw release data from GitHub API

        Returns:
            Release instance

        """
        assets = []
        for asset_data in api_data.get("assets") or []:
            if not isinstance(asset_data, dict):
                continue
            asset = Asset.from_api_response(asset_data)
            if asset:
                assets.append(asset)

        tag = api_data.get("tag_name") or ""
        return cls(
            tag=tag,
            name=api_data.get("name") or tag,
            assets=tuple(assets),
            is_draft=bool(api_data.get("draft", False)),
            is_prerelease=bool(api_data.get("prerelease", False)),
            published_at=parse_timestamp(api_data.get("published_at")),
        )


def parse_repository(reference: str) -> tuple[str, str]:
    """Split a repository reference into owner and name.

    Accepts ``owner/repo`` and ``https://github.com/owner/repo`` URLs (with
    optional trailing path, ``.git`` suffix or slash).

    Args:
        reference: Repository reference given by the user

    Returns:
        Tuple of (owner, repo)

    Raises:
        InvalidRepositoryError: If the reference cannot be parsed

    """
    text = reference.strip()
    if "://" in text or text.startswith(GITHUB_WEB_HOST):
        parsed = urlparse(text if "://" in text else f"https://{text}")
        if parsed.netloc.lower() not in (GITHUB_WEB_HOST, f"www.{GITHUB_WEB_HOST}"):
            raise InvalidRepositoryError(
                f"Only {GITHUB_WEB_HOST} repositories are supported: {reference}"
            )
        parts = [p for p in parsed.path.split("/") if p][:2]
    else:
        parts = [p for p in text.split("/") if p]

    if len(parts) != 2:
        raise InvalidRepositoryError(
            f"Repository must be given as owner/repo: {reference!r}"
        )

    owner, repo = parts
    repo = repo.removesuffix(".git")
    if not _NAME_PATTERN.match(owner) or not _NAME_PATTERN.match(repo):
        raise InvalidRepositoryError(
            f"Invalid repository name: {reference!r}"
        )
    return owner, repo


def build_user_agent() -> str:
    """User-Agent header sent with every request."""
    return f"{USER_AGENT_PREFIX}/{__version__}"


class ReleaseAPIClient:
    """Handles direct communication with GitHub API for release data."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        auth_manager: GitHubAuthManager,
        api_base: str = GITHUB_API_BASE,
    ) -> None:
        """Initialize the API client.

        Args:
            session: aiohttp session for making requests
            auth_manager: GitHub authentication manager
            api_base: Base URL of the GitHub REST API

        """
        self.session = session
        self.auth_manager = auth_manager
        self.api_base = api_base.rstrip("/")

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": GITHUB_ACCEPT_HEADER,
            "User-Agent": build_user_agent(),
        }
        return self.auth_manager.apply_auth(headers)

    async def _fetch_from_api(
        self,
        url: str,
        repository: str,
        tag: str | None = None,
        params: dict[str, str] | None = None,
        not_found_message: str = "Repository not found",
    ) -> Any:
        """Fetch and decode a JSON document from the GitHub API.

        Args:
            url: API URL to fetch
            repository: ``owner/repo`` for error context
            tag: Release tag for error context
            params: Optional query parameters
            not_found_message: Message used when GitHub answers 404

        Returns:
            Decoded JSON payload

        Raises:
            NotFoundError: On HTTP 404
            RateLimitedError: When GitHub throttles the request
            NetworkError: On transport failures and other HTTP errors

        """
        logger.debug("GET %s %s", url, params or "")
        try:
            async with self.session.get(
                url, headers=self._headers(), params=params
            ) as response:
                self.auth_manager.update_rate_limit_info(response.headers)

                if response.status == HTTP_NOT_FOUND:
                    raise NotFoundError(
                        not_found_message, repository=repository, tag=tag
                    )

                if self._is_rate_limited(response):
                    raise RateLimitedError(
                        "GitHub API rate limit exceeded, "
                        + self.auth_manager.describe_rate_limit(),
                        repository=repository,
                        tag=tag,
                    )

                if response.status >= 400:
                    raise NetworkError(
                        f"GitHub API returned HTTP {response.status}",
                        repository=repository,
                        tag=tag,
                    )

                body = await response.read()
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.error("API fetch failed: %s - %s", url, e)
            raise NetworkError(
                f"Failed to reach GitHub API: {e}", repository=repository, tag=tag
            ) from e

        try:
            return orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise NetworkError(
                "GitHub API returned invalid JSON", repository=repository, tag=tag
            ) from e

    def _is_rate_limited(self, response: aiohttp.ClientResponse) -> bool:
        if response.status == HTTP_TOO_MANY_REQUESTS:
            return True
        return (
            response.status == HTTP_FORBIDDEN
            and response.headers.get("X-RateLimit-Remaining") == "0"
        )

    async def get_release(
        self, owner: str, repo: str, tag: str | None = None
    ) -> Release:
        """Fetch a release by tag, or the latest stable release.

        Args:
            owner: Repository owner
            repo: Repository name
            tag: Release tag; None selects the latest non-draft,
                non-prerelease release

        Returns:
            Release instance

        Raises:
            NotFoundError: If the repository or tag does not exist

        """
        repository = f"{owner}/{repo}"
        if tag:
            # Tags may contain "/", "#" or "?"
            quoted = quote(tag, safe="")
            url = f"{self.api_base}/repos/{owner}/{repo}/releases/tags/{quoted}"
            not_found = f"Release '{tag}' not found"
        else:
            url = f"{self.api_base}/repos/{owner}/{repo}/releases/latest"
            not_found = "Repository not found or has no published release"

        data = await self._fetch_from_api(
            url, repository, tag, not_found_message=not_found
        )
        if not isinstance(data, dict):
            raise NetworkError(
                "Unexpected API response for release",
                repository=repository,
                tag=tag,
            )

        release = Release.from_api_response(data)
        logger.debug(
            "Fetched release %s with %d assets", release.tag, len(release.assets)
        )
        return release

    async def list_releases(
        self, owner: str, repo: str, per_page: int = RELEASES_PER_PAGE
    ) -> AsyncIterator[Release]:
        """Iterate over the repository's releases, newest first.

        Pages are requested lazily as the caller consumes the iterator.

        Args:
            owner: Repository owner
            repo: Repository name
            per_page: Releases requested per API page

        Yields:
            Release instances in API order

        """
        repository = f"{owner}/{repo}"
        url = f"{self.api_base}/repos/{owner}/{repo}/releases"
        page = 1
        while True:
            data = await self._fetch_from_api(
                url,
                repository,
                params={"per_page": str(per_page), "page": str(page)},
            )
            if not isinstance(data, list):
                raise NetworkError(
                    "Unexpected API response for release listing",
                    repository=repository,
                )

            for item in data:
                if isinstance(item, dict):
                    yield Release.from_api_response(item)

            if len(data) < per_page:
                return
            page += 1
