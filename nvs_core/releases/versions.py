"""Alias classification and semantic-version helpers."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from typing import Iterable

from .models import NIGHTLY, STABLE, Release

logger = logging.getLogger(__name__)

_SEMVER_RE = re.compile(
    r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?$"
)
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_COMMIT_LENGTHS = (7, 40)
MASTER = "master"


class AliasKind(enum.Enum):
    STABLE = "stable"
    NIGHTLY = "nightly"
    COMMIT = "commit"
    TAG = "tag"


@dataclass(frozen=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()

    def _key(self) -> tuple:
        # A release sorts above any of its prereleases.
        pre = tuple((0, int(part), "") if part.isdigit() else (1, 0, part) for part in self.prerelease)
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre)

    def __lt__(self, other: "SemVer") -> bool:
        return self._key() < other._key()

    def __le__(self, other: "SemVer") -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: "SemVer") -> bool:
        return self._key() > other._key()

    def __ge__(self, other: "SemVer") -> bool:
        return self._key() >= other._key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text = f"{text}-{'.'.join(self.prerelease)}"
        return text


def parse_semver(value: str) -> SemVer:
    m = _SEMVER_RE.match((value or "").strip())
    if not m:
        raise ValueError(f"invalid semantic version: {value!r}")
    prerelease = tuple(m.group(4).split(".")) if m.group(4) else ()
    return SemVer(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0), prerelease)


def try_parse_semver(value: str) -> SemVer | None:
    try:
        return parse_semver(value)
    except ValueError:
        return None


def normalize_version(version: str) -> str:
    """Prefix ``version`` with ``v`` unless it is a rolling alias or already prefixed.

    The result is not validated as a semantic version.
    """
    if version in (STABLE, NIGHTLY):
        return version
    if version.startswith("v"):
        return version
    return f"v{version}"


def is_commit_hash(value: str) -> bool:
    if value == MASTER:
        return True
    if len(value) not in _COMMIT_LENGTHS:
        return False
    return all(ch in _HEX_DIGITS for ch in value)


def classify_alias(alias: str) -> AliasKind:
    if alias == STABLE:
        return AliasKind.STABLE
    if alias == NIGHTLY:
        return AliasKind.NIGHTLY
    if is_commit_hash(alias):
        return AliasKind.COMMIT
    return AliasKind.TAG


def filter_releases(releases: Iterable[Release], min_version: str) -> list[Release]:
    """Keep rolling tags plus every release whose tag is a semver ``>= min_version``."""
    minimum = parse_semver(min_version)
    filtered: list[Release] = []
    for release in releases:
        if release.tag_name in (STABLE, NIGHTLY):
            filtered.append(release)
            continue
        version = try_parse_semver(normalize_version(release.tag_name))
        if version is None:
            logger.debug("skipping release with non-semver tag %s", release.tag_name)
            continue
        if version >= minimum:
            filtered.append(release)
    return filtered


def max_semver_release(releases: Iterable[Release]) -> Release | None:
    best: Release | None = None
    best_version: SemVer | None = None
    for release in releases:
        version = try_parse_semver(release.tag_name)
        if version is None:
            continue
        if best_version is None or version > best_version:
            best = release
            best_version = version
    return best
