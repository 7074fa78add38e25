"""Tests for credential lookup and rate limit bookkeeping."""

import time

import pytest

from grd.auth import GitHubAuthManager


def test_explicit_token_wins(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "from-env")

    manager = GitHubAuthManager(token="from-cli")

    assert manager.apply_auth({}) == {"Authorization": "Bearer from-cli"}


@pytest.mark.parametrize("env_var", ["GITHUB_TOKEN", "GH_TOKEN"])
def test_token_from_environment(monkeypatch, env_var):
    monkeypatch.setenv(env_var, " env-token ")

    assert GitHubAuthManager().token == "env-token"


def test_token_from_keyring(monkeypatch):
    monkeypatch.setattr(
        "grd.auth.keyring.get_password",
        lambda service, username: "stored" if service == "grd-github-token" else None,
    )

    manager = GitHubAuthManager()

    assert manager.token == "stored"
    assert manager.is_authenticated()


def test_keyring_failure_means_no_token(monkeypatch):
    def broken(*args):
        raise RuntimeError("no backend")

    monkeypatch.setattr("grd.auth.keyring.get_password", broken)

    manager = GitHubAuthManager()

    assert manager.token is None
    assert manager.apply_auth({"Accept": "x"}) == {"Accept": "x"}


def test_rate_limit_info_from_headers():
    manager = GitHubAuthManager()
    reset = int(time.time()) + 120

    manager.update_rate_limit_info(
        {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)}
    )

    status = manager.get_rate_limit_status()
    assert status["remaining"] == 0
    assert 0 < status["reset_in_seconds"] <= 120
    assert "resets in" in manager.describe_rate_limit()
    assert "GITHUB_TOKEN" in manager.describe_rate_limit()


def test_invalid_rate_limit_headers_are_ignored():
    manager = GitHubAuthManager(token="t")

    manager.update_rate_limit_info({"X-RateLimit-Remaining": "many"})

    assert manager.get_rate_limit_status()["remaining"] is None
    assert manager.describe_rate_limit() == "retry later"
