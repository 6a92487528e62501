"""Errors raised while fetching, caching, and resolving releases."""

from __future__ import annotations

from pathlib import Path

from nvs_core.errors import NvsError


class ReleaseError(NvsError):
    kind = "release"


class RateLimitedError(ReleaseError):
    kind = "rate_limited"

    def __init__(self, url: str, status_code: int = 403) -> None:
        super().__init__(f"GitHub API rate limit exceeded ({url}); please try again later")
        self.url = url
        self.status_code = status_code


class ApiStatusError(ReleaseError):
    kind = "api_status"

    def __init__(self, url: str, status_code: int, detail: str = "") -> None:
        message = f"release API returned status {status_code} for {url}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ReleaseFetchError(ReleaseError):
    kind = "release_fetch"

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class CacheWriteError(ReleaseError):
    kind = "cache_write"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"failed to write release cache {path}: {reason}")
        self.path = path


class ReleaseNotFoundError(ReleaseError):
    kind = "release_not_found"

    def __init__(self, alias: str, reason: str | None = None) -> None:
        message = f"release not found: {alias}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.alias = alias


class UnsupportedPlatformError(ReleaseError):
    kind = "unsupported_platform"

    def __init__(self, system: str, machine: str) -> None:
        super().__init__(f"unsupported platform: {system}/{machine}")
        self.system = system
        self.machine = machine


class NoMatchingAssetError(ReleaseError):
    kind = "no_matching_asset"

    def __init__(self, tag_name: str, system: str, machine: str) -> None:
        super().__init__(f"no matching asset in {tag_name} for {system}/{machine}")
        self.tag_name = tag_name
        self.system = system
        self.machine = machine
