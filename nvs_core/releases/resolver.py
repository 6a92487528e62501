"""Alias resolution against the cached release list."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import requests

from nvs_core.cancellation import CancelToken

from .cache import ReleaseCache
from .errors import NoMatchingAssetError, ReleaseNotFoundError
from .models import NIGHTLY, STABLE, Release, ReleasesConfig
from .platform import asset_patterns, current_platform, normalize_platform
from .versions import AliasKind, classify_alias, max_semver_release, normalize_version

logger = logging.getLogger(__name__)

CHECKSUM_SUFFIX = ".sha256"
ARCHIVE_SUFFIXES = (".tar.gz", ".zip")
VERSION_FILE = "version.txt"
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class VersionResolver:
    """Turns an alias into one concrete :class:`Release`.

    Precedence: a release literally tagged ``stable`` or ``nightly`` always
    wins over a computed latest-by-semver or latest-by-date release.
    """

    def __init__(self, cache: ReleaseCache) -> None:
        self.cache = cache

    def resolve_version(self, alias: str, *, cancel: CancelToken | None = None) -> Release:
        kind = classify_alias(alias)
        if kind is AliasKind.COMMIT:
            raise ReleaseNotFoundError(alias, "commit hashes have no published release")
        releases = self.cache.get_cached_releases(False, cancel=cancel)
        if kind is AliasKind.STABLE:
            return find_latest_stable(releases)
        if kind is AliasKind.NIGHTLY:
            return find_latest_nightly(releases)
        return find_specific_version(releases, alias)

    def list_releases(self, *, force_refresh: bool = False, cancel: CancelToken | None = None) -> list[Release]:
        return self.cache.get_cached_releases(force_refresh, cancel=cancel)


def find_latest_stable(releases: list[Release]) -> Release:
    for release in releases:
        if release.tag_name == STABLE:
            return release
    best = max_semver_release(release for release in releases if not release.prerelease)
    if best is None:
        raise ReleaseNotFoundError(STABLE, "no stable release available")
    return best


def find_latest_nightly(releases: list[Release]) -> Release:
    for release in releases:
        if release.tag_name == NIGHTLY:
            return release
    candidates = [release for release in releases if release.prerelease]
    if not candidates:
        raise ReleaseNotFoundError(NIGHTLY, "no nightly release available")
    return max(candidates, key=lambda release: release.published_datetime() or _EPOCH)


def find_specific_version(releases: list[Release], alias: str) -> Release:
    tag = normalize_version(alias)
    for release in releases:
        if release.tag_name == tag:
            return release
    raise ReleaseNotFoundError(tag)


def resolve_version(
    alias: str,
    cache_path: Path,
    *,
    session: requests.Session | None = None,
    config: ReleasesConfig | None = None,
    cancel: CancelToken | None = None,
) -> Release:
    resolver = VersionResolver(ReleaseCache(cache_path, session=session, config=config))
    return resolver.resolve_version(alias, cancel=cancel)


def get_release_identifier(release: Release, alias: str) -> str:
    if alias == NIGHTLY:
        prefix = f"{NIGHTLY}-"
        if release.tag_name.startswith(prefix):
            return release.tag_name[len(prefix) :]
    return release.tag_name


def _is_archive(name: str) -> bool:
    return name.endswith(ARCHIVE_SUFFIXES)


def get_asset_url(
    release: Release,
    system: str | None = None,
    machine: str | None = None,
) -> tuple[str, str]:
    """Return ``(download_url, matched_pattern)`` for the running platform.

    Patterns are tried in priority order. Only ``.tar.gz`` and ``.zip`` assets
    match, so AppImages, zsync files and checksums published under the same
    platform name are passed over.
    """
    patterns = asset_patterns(system, machine)
    for pattern in patterns:
        for asset in release.assets:
            if pattern in asset.name and _is_archive(asset.name):
                return asset.download_url, pattern
    detected_system, detected_machine = current_platform()
    os_name, arch = normalize_platform(system or detected_system, machine or detected_machine)
    raise NoMatchingAssetError(release.tag_name, os_name, arch)


def get_checksum_url(release: Release, asset_pattern: str) -> str:
    """URL of the ``<asset>.sha256`` companion, or ``""`` when none is published."""
    for asset in release.assets:
        if asset_pattern not in asset.name or not _is_archive(asset.name):
            continue
        companion = release.find_asset(f"{asset.name}{CHECKSUM_SUFFIX}")
        if companion is not None:
            return companion.download_url
    for asset in release.assets:
        name = asset.name
        if asset_pattern in name and name.endswith(CHECKSUM_SUFFIX) and _is_archive(name[: -len(CHECKSUM_SUFFIX)]):
            return asset.download_url
    logger.debug("no checksum asset for pattern %s in %s", asset_pattern, release.tag_name)
    return ""


def get_installed_release_identifier(versions_dir: Path, alias: str) -> str:
    path = Path(versions_dir) / alias / VERSION_FILE
    return path.read_text(encoding="utf-8").strip()
