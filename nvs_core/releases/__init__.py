"""Release list caching and alias resolution."""

from .cache import ReleaseCache, get_cached_releases
from .errors import (
    ApiStatusError,
    CacheWriteError,
    NoMatchingAssetError,
    RateLimitedError,
    ReleaseError,
    ReleaseFetchError,
    ReleaseNotFoundError,
    UnsupportedPlatformError,
)
from .models import NIGHTLY, STABLE, Asset, Release, ReleasesConfig
from .resolver import (
    VersionResolver,
    find_latest_nightly,
    find_latest_stable,
    find_specific_version,
    get_asset_url,
    get_checksum_url,
    get_installed_release_identifier,
    get_release_identifier,
    resolve_version,
)
from .versions import (
    AliasKind,
    SemVer,
    classify_alias,
    filter_releases,
    is_commit_hash,
    normalize_version,
    parse_semver,
)

__all__ = [
    "AliasKind",
    "ApiStatusError",
    "Asset",
    "CacheWriteError",
    "NIGHTLY",
    "NoMatchingAssetError",
    "RateLimitedError",
    "Release",
    "ReleaseCache",
    "ReleaseError",
    "ReleaseFetchError",
    "ReleaseNotFoundError",
    "ReleasesConfig",
    "STABLE",
    "SemVer",
    "UnsupportedPlatformError",
    "VersionResolver",
    "classify_alias",
    "filter_releases",
    "find_latest_nightly",
    "find_latest_stable",
    "find_specific_version",
    "get_asset_url",
    "get_cached_releases",
    "get_checksum_url",
    "get_installed_release_identifier",
    "get_release_identifier",
    "is_commit_hash",
    "normalize_version",
    "parse_semver",
    "resolve_version",
]
