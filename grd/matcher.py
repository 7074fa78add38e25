"""Asset matching against a target platform.

Assets are ranked by how confidently their file names identify the target
operating system and architecture. The selection rules are:

1. Assets containing an exclusion term are dropped; exclusion always wins.
2. Checksum, signature and SBOM files are dropped.
3. Assets that name another OS or architecture, and not the target one,
   are dropped as incompatible.
4. The rest are scored per dimension: an exact token match scores 2, a
   synonym or partial match scores 1. Assets scoring nothing on both
   dimensions are kept only when nothing else matched.
5. Ties keep the release's listing order.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .constants import (
    AUXILIARY_ASSET_NAMES,
    AUXILIARY_ASSET_SUFFIXES,
    EXACT_MATCH_SCORE,
    PARTIAL_MATCH_SCORE,
)
from .exceptions import NoMatchingAssetError
from .github_client import Asset
from .logger import get_logger
from .platform import Architecture, OperatingSystem, PlatformDescriptor

logger = get_logger(__name__)

# x86_64 is kept whole even though "_" and "-" are separators
_TOKEN_PATTERN = re.compile(r"x86[-_]64|[^-_.\s]+")


@dataclass(slots=True, frozen=True)
class Keywords:
    """Name tokens identifying one operating system or architecture."""

    exact: frozenset[str]
    partial: frozenset[str]

    @property
    def all(self) -> frozenset[str]:
        return self.exact | self.partial


OS_KEYWORDS: dict[OperatingSystem, Keywords] = {
    OperatingSystem.LINUX: Keywords(
        exact=frozenset({"linux"}),
        partial=frozenset({"gnu", "musl", "musleabi", "appimage"}),
    ),
    OperatingSystem.MACOS: Keywords(
        exact=frozenset({"macos", "darwin"}),
        partial=frozenset({"mac", "osx", "macosx", "apple", "dmg"}),
    ),
    OperatingSystem.WINDOWS: Keywords(
        exact=frozenset({"windows"}),
        partial=frozenset({"win", "win32", "win64", "msvc", "mingw", "exe", "msi"}),
    ),
}

ARCH_KEYWORDS: dict[Architecture, Keywords] = {
    Architecture.X86_64: Keywords(
        exact=frozenset({"x86_64", "amd64", "x64"}),
        partial=frozenset({"64bit", "x86", "intel", "win64", "universal", "universal2"}),
    ),
    Architecture.AARCH64: Keywords(
        exact=frozenset({"aarch64", "arm64"}),
        partial=frozenset({"arm", "armv8", "arm64e", "universal", "universal2"}),
    ),
}

# Architectures grd has no target for; naming one rules an asset out
FOREIGN_ARCH_TOKENS: frozenset[str] = frozenset(
    {
        "i386",
        "i686",
        "386",
        "x86_32",
        "32bit",
        "armv6",
        "armv7",
        "armv7l",
        "armhf",
        "armel",
        "arm32",
        "ppc64",
        "ppc64le",
        "s390x",
        "riscv64",
        "mips",
        "mips64",
        "mipsel",
        "loong64",
    }
)


@dataclass(slots=True, frozen=True)
class MatchCandidate:
    """An asset accepted by the matcher, with its rank.

    Attributes:
        asset: The matched asset
        score: Combined OS and architecture score
        index: Position of the asset in the release listing

    """

    asset: Asset
    score: int
    index: int


def tokenize(name: str) -> frozenset[str]:
    """Split an asset name into lowercase tokens.

    Examples:
        >>> sorted(tokenize("App-Linux-x86_64.tar.gz"))
        ['app', 'gz', 'linux', 'tar', 'x86_64']

    """
    return frozenset(
        token.replace("x86-64", "x86_64")
        for token in _TOKEN_PATTERN.findall(name.lower())
    )


def is_auxiliary(name: str) -> bool:
    """Check whether an asset is a checksum, signature or SBOM file."""
    lowered = name.lower()
    return lowered in AUXILIARY_ASSET_NAMES or lowered.endswith(
        AUXILIARY_ASSET_SUFFIXES
    )


def is_excluded(name: str, exclude_terms: Iterable[str]) -> bool:
    """Check whether an asset name contains any exclusion term."""
    lowered = name.lower()
    return any(term and term.lower() in lowered for term in exclude_terms)


def _dimension_score(tokens: frozenset[str], keywords: Keywords | None) -> int:
    if keywords is None:
        return 0
    if tokens & keywords.exact:
        return EXACT_MATCH_SCORE
    if tokens & keywords.partial:
        return PARTIAL_MATCH_SCORE
    # e.g. "linux64", "macos11"
    if any(word in token for token in tokens for word in keywords.exact):
        return PARTIAL_MATCH_SCORE
    return 0


def _foreign_tokens(
    target: OperatingSystem | Architecture,
    table: dict,
) -> frozenset[str]:
    """Tokens naming any entry of ``table`` other than ``target``."""
    own = table[target].all if target in table else frozenset()
    foreign: set[str] = set()
    for key, keywords in table.items():
        if key != target:
            foreign |= keywords.all
    return frozenset(foreign - own)


def _is_incompatible(
    tokens: frozenset[str],
    platform: PlatformDescriptor,
    os_score: int,
    arch_score: int,
) -> bool:
    if platform.os is not OperatingSystem.OTHER and not os_score:
        if tokens & _foreign_tokens(platform.os, OS_KEYWORDS):
            return True
    if platform.arch is not Architecture.OTHER and not arch_score:
        foreign = _foreign_tokens(platform.arch, ARCH_KEYWORDS) | FOREIGN_ARCH_TOKENS
        if tokens & foreign:
            return True
    return False


def match_assets(
    assets: Sequence[Asset],
    platform: PlatformDescriptor,
    exclude_terms: Iterable[str] = (),
) -> list[MatchCandidate]:
    """Rank release assets for a target platform.

    Args:
        assets: Release assets in API order
        platform: Target platform
        exclude_terms: Case-insensitive substrings that rule an asset out

    Returns:
        Candidates ordered from highest to lowest confidence

    Raises:
        NoMatchingAssetError: If no asset survives filtering

    """
    exclude_terms = [term.lower() for term in exclude_terms if term]
    scored: list[MatchCandidate] = []
    neutral: list[MatchCandidate] = []

    for index, asset in enumerate(assets):
        if is_excluded(asset.name, exclude_terms):
            logger.debug("Excluded by filter: %s", asset.name)
            continue
        if is_auxiliary(asset.name):
            logger.debug("Skipping auxiliary asset: %s", asset.name)
            continue

        tokens = tokenize(asset.name)
        os_score = _dimension_score(tokens, OS_KEYWORDS.get(platform.os))
        arch_score = _dimension_score(tokens, ARCH_KEYWORDS.get(platform.arch))

        if _is_incompatible(tokens, platform, os_score, arch_score):
            logger.debug("Incompatible with %s: %s", platform, asset.name)
            continue

        candidate = MatchCandidate(
            asset=asset, score=os_score + arch_score, index=index
        )
        if candidate.score > 0:
            scored.append(candidate)
        else:
            neutral.append(candidate)

    if scored:
        candidates = sorted(scored, key=lambda c: (-c.score, c.index))
    else:
        # Nothing names the platform; let the resolver choose among the rest
        candidates = neutral

    if not candidates:
        raise NoMatchingAssetError(f"No matching asset found for {platform}")

    logger.debug(
        "Candidates for %s: %s",
        platform,
        [(c.asset.name, c.score) for c in candidates],
    )
    return candidates
