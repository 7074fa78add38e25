"""Tests for asset matching and ranking."""

import pytest

from grd.exceptions import NoMatchingAssetError
from grd.github_client import Asset
from grd.matcher import is_auxiliary, match_assets, tokenize
from grd.platform import Architecture, OperatingSystem, PlatformDescriptor

LINUX_X86_64 = PlatformDescriptor(OperatingSystem.LINUX, Architecture.X86_64)
LINUX_AARCH64 = PlatformDescriptor(OperatingSystem.LINUX, Architecture.AARCH64)
MACOS_AARCH64 = PlatformDescriptor(OperatingSystem.MACOS, Architecture.AARCH64)
WINDOWS_X86_64 = PlatformDescriptor(OperatingSystem.WINDOWS, Architecture.X86_64)


def make_assets(*names: str) -> list[Asset]:
    return [
        Asset(name=name, download_url=f"https://example.com/{name}", size_bytes=1024)
        for name in names
    ]


def names(candidates) -> list[str]:
    return [c.asset.name for c in candidates]


def test_tokenize_keeps_x86_64_whole():
    assert tokenize("App-Linux-x86_64.tar.gz") == {"app", "linux", "x86_64", "tar", "gz"}
    assert "x86_64" in tokenize("tool_x86-64_linux")


def test_linux_asset_ranks_above_windows_asset():
    assets = make_assets("app-windows-x86_64.zip", "app-linux-x86_64.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64)

    assert candidates[0].asset.name == "app-linux-x86_64.tar.gz"
    assert "app-windows-x86_64.zip" not in names(candidates[:1])


def test_exclusion_always_wins():
    assets = make_assets("app-linux-x86_64-musl.tar.gz", "app-linux-x86_64.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64, exclude_terms=["musl"])

    assert names(candidates) == ["app-linux-x86_64.tar.gz"]


def test_exclusion_is_case_insensitive_substring():
    assets = make_assets("app-linux-x86_64-MUSL.tar.gz", "app-linux-x86_64-gnu.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64, exclude_terms=["Mus"])

    assert names(candidates) == ["app-linux-x86_64-gnu.tar.gz"]


def test_everything_excluded_raises():
    assets = make_assets("cli-linux-x86_64-musl.tar.gz", "cli-darwin-arm64.tar.gz")

    with pytest.raises(NoMatchingAssetError):
        match_assets(assets, LINUX_X86_64, exclude_terms=["musl"])


def test_excluded_asset_not_returned_as_fallback():
    assets = make_assets("tool-musl.tar.gz", "tool.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64, exclude_terms=["musl"])

    assert names(candidates) == ["tool.tar.gz"]
    assert candidates[0].score == 0


def test_unscored_assets_are_fallback_only():
    assets = make_assets("tool-linux-x86_64.tar.gz", "tool.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64)

    assert names(candidates) == ["tool-linux-x86_64.tar.gz"]


def test_fallback_keeps_listing_order():
    assets = make_assets("tool-src.zip", "tool.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64)

    assert names(candidates) == ["tool-src.zip", "tool.tar.gz"]


def test_exact_match_outranks_partial_match():
    assets = make_assets("app-linux64.tar.gz", "app-linux-amd64.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64)

    assert names(candidates) == ["app-linux-amd64.tar.gz", "app-linux64.tar.gz"]
    assert candidates[0].score > candidates[1].score


def test_ties_keep_listing_order():
    assets = make_assets("b-linux-x86_64.zip", "a-linux-x86_64.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64)

    assert names(candidates) == ["b-linux-x86_64.zip", "a-linux-x86_64.tar.gz"]
    assert candidates[0].score == candidates[1].score


def test_other_architecture_is_dropped():
    assets = make_assets("app-linux-amd64.tar.gz", "app-linux-arm64.tar.gz")

    candidates = match_assets(assets, LINUX_AARCH64)

    assert names(candidates) == ["app-linux-arm64.tar.gz"]


def test_foreign_architecture_is_dropped():
    assets = make_assets("app-linux-i686.tar.gz", "app-linux.tar.gz")

    candidates = match_assets(assets, LINUX_X86_64)

    assert names(candidates) == ["app-linux.tar.gz"]


def test_universal_macos_build_matches_arm():
    assets = make_assets("app-macos-universal.tar.gz", "app-linux-arm64.tar.gz")

    candidates = match_assets(assets, MACOS_AARCH64)

    assert names(candidates) == ["app-macos-universal.tar.gz"]


def test_windows_synonyms_score():
    assets = make_assets("app-win64.exe", "app-linux-x86_64.tar.gz")

    candidates = match_assets(assets, WINDOWS_X86_64)

    assert names(candidates) == ["app-win64.exe"]
    assert candidates[0].score > 0


def test_auxiliary_assets_are_dropped():
    assets = make_assets(
        "checksums.txt",
        "app-linux-x86_64.tar.gz.sha256",
        "app-linux-x86_64.tar.gz.sig",
        "app-linux-x86_64.tar.gz",
    )

    candidates = match_assets(assets, LINUX_X86_64)

    assert names(candidates) == ["app-linux-x86_64.tar.gz"]


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("SHA256SUMS", True),
        ("app.tar.gz.asc", True),
        ("app.sbom.spdx.json", True),
        ("app.tar.gz", False),
    ],
)
def test_is_auxiliary(name, expected):
    assert is_auxiliary(name) is expected


def test_no_assets_raises():
    with pytest.raises(NoMatchingAssetError, match="linux-x86_64"):
        match_assets([], LINUX_X86_64)
