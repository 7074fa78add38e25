"""Tests for the release listing command."""

from argparse import Namespace
from datetime import UTC, datetime

import pytest

from grd.commands.releases import ReleasesHandler, describe_release
from grd.config import ConfigManager
from grd.exceptions import NotFoundError
from grd.github_client import Release

API = "https://api.github.com/repos/octo/cli/releases"


def make_release(**overrides) -> Release:
    values = {
        "tag": "v1.0.0",
        "name": "v1.0.0",
        "is_draft": False,
        "is_prerelease": False,
        "published_at": datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        "assets": (),
    }
    values.update(overrides)
    return Release(**values)


def test_describe_stable_release():
    assert describe_release(make_release()) == "  - v1.0.0 (2024-05-01)"


def test_describe_marks_drafts_and_prereleases():
    line = describe_release(
        make_release(tag="v2.0.0-rc1", is_draft=True, is_prerelease=True, published_at=None)
    )

    assert line == "  - v2.0.0-rc1 [draft, prerelease]"


@pytest.fixture
def handler(monkeypatch):
    def _build(session):
        instance = ReleasesHandler(ConfigManager())
        monkeypatch.setattr(instance, "_create_session", lambda: session)
        return instance

    return _build


def args(repo: str = "octo/cli") -> Namespace:
    return Namespace(repo=repo, token=None)


@pytest.mark.asyncio
async def test_lists_releases_newest_first(handler, fake_session, json_response, capsys):
    session = fake_session(
        {
            API: json_response(
                [
                    {
                        "tag_name": "v1.1.0",
                        "prerelease": True,
                        "published_at": "2024-06-01T00:00:00Z",
                        "assets": [],
                    },
                    {
                        "tag_name": "v1.0.0",
                        "published_at": "2024-05-01T00:00:00Z",
                        "assets": [],
                    },
                ]
            )
        }
    )

    await handler(session).execute(args())

    assert capsys.readouterr().out.splitlines() == [
        "Available releases for octo/cli:",
        "  - v1.1.0 (2024-06-01) [prerelease]",
        "  - v1.0.0 (2024-05-01)",
    ]
    url, _, params = session.requests[0]
    assert url == API
    assert params["page"] == "1"


@pytest.mark.asyncio
async def test_reports_repository_without_releases(handler, fake_session, json_response, capsys):
    session = fake_session({API: json_response([])})

    await handler(session).execute(args("https://github.com/octo/cli"))

    assert capsys.readouterr().out == "No releases found for octo/cli\n"


@pytest.mark.asyncio
async def test_missing_repository_raises_not_found(handler, fake_session):
    with pytest.raises(NotFoundError) as exc_info:
        await handler(fake_session({})).execute(args("octo/missing"))

    assert exc_info.value.repository == "octo/missing"
