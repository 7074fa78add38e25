"""GitHub credential lookup and rate limit bookkeeping.

grd never stores or validates tokens. A token is taken from the command
line, the environment or an existing keyring entry, and forwarded as a
bearer ``Authorization`` header.
"""

import os
import time
from collections.abc import Mapping

import keyring

from .constants import KEYRING_SERVICE_NAME, TOKEN_ENV_VARS
from .logger import get_logger

logger = get_logger(__name__)


class GitHubAuthManager:
    """Resolves the optional GitHub token and tracks rate limit headers."""

    def __init__(self, token: str | None = None) -> None:
        """Initialize the auth manager.

        Args:
            token: Explicit token supplied by the caller, preferred over
                every other source.

        """
        self._explicit_token = token.strip() if token else None
        self._resolved = False
        self._token: str | None = None
        self._rate_limit_reset: int | None = None
        self._remaining_requests: int | None = None

    @staticmethod
    def get_stored_token() -> str | None:
        """Retrieve a token from the environment or the keyring.

        Returns:
            Token if available, None if nothing is configured or the
            keyring is unavailable.

        """
        for env_var in TOKEN_ENV_VARS:
            value = os.environ.get(env_var, "").strip()
            if value:
                logger.debug("GitHub token taken from %s (value hidden)", env_var)
                return value

        try:
            token = keyring.get_password(KEYRING_SERVICE_NAME, "token")
        except Exception as e:  # noqa: BLE001
            # Expected in headless environments without a keyring backend
            logger.debug("Keyring access failed: %s", e)
            return None

        if token:
            logger.debug("GitHub token retrieved from keyring (value hidden)")
            return token.strip() or None
        return None

    @property
    def token(self) -> str | None:
        """Token forwarded to GitHub, resolved once per manager."""
        if not self._resolved:
            self._token = self._explicit_token or self.get_stored_token()
            self._resolved = True
        return self._token

    def apply_auth(self, headers: dict[str, str]) -> dict[str, str]:
        """Apply GitHub authentication to request headers.

        Args:
            headers: HTTP headers to apply authentication to.

        Returns:
            Headers with authentication applied if a token is available,
            otherwise the unmodified headers.

        """
        token = self.token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def is_authenticated(self) -> bool:
        """Check whether a token will be sent."""
        return bool(self.token)

    def update_rate_limit_info(self, headers: Mapping[str, str]) -> None:
        """Update rate limit information from response headers."""
        remaining = headers.get("X-RateLimit-Remaining")
        reset = headers.get("X-RateLimit-Reset")
        try:
            if remaining is not None:
                self._remaining_requests = int(remaining)
            if reset is not None:
                self._rate_limit_reset = int(reset)
        except (ValueError, TypeError) as e:
            logger.warning("Invalid rate limit headers received: %s", e)

    def get_rate_limit_status(self) -> dict[str, int | None]:
        """Get current rate limit status."""
        current_time = int(time.time())
        return {
            "remaining": self._remaining_requests,
            "reset_time": self._rate_limit_reset,
            "reset_in_seconds": (
                max(self._rate_limit_reset - current_time, 0)
                if self._rate_limit_reset
                else None
            ),
        }

    def describe_rate_limit(self) -> str:
        """Build a user-facing hint about the rate limit reset."""
        reset_in = self.get_rate_limit_status()["reset_in_seconds"]
        hint = (
            f"resets in {reset_in} seconds"
            if reset_in is not None
            else "retry later"
        )
        if not self.is_authenticated():
            hint += "; set GITHUB_TOKEN or pass --token to raise the limit"
        return hint
