"""Release list fetching with a TTL-based on-disk cache."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any

import requests
from requests.exceptions import RequestException

from nvs_core.cancellation import CancelToken, check_cancelled
from nvs_core.errors import ConfigError
from nvs_core.http import HttpConfig, build_session, error_body_snippet
from nvs_core.locking import FileLock

from .errors import ApiStatusError, CacheWriteError, RateLimitedError, ReleaseFetchError
from .models import Release, ReleasesConfig
from .versions import filter_releases

logger = logging.getLogger(__name__)

CACHE_FILE_MODE = 0o644


def cache_lock_path(cache_path: Path) -> Path:
    return cache_path.with_name(f"{cache_path.name}.lock")


class ReleaseCache:
    """Serves the filtered release list from ``cache_path`` while it is fresh.

    The file's modification time is the staleness clock; refreshes replace the
    file atomically under an advisory lock so concurrent writers never
    interleave.
    """

    def __init__(
        self,
        cache_path: Path,
        *,
        session: requests.Session | None = None,
        config: ReleasesConfig | None = None,
        http_config: HttpConfig | None = None,
    ) -> None:
        self.cache_path = Path(cache_path)
        self.config = config or ReleasesConfig()
        self.http_config = http_config or HttpConfig()
        self.session = session or build_session(self.http_config)

    def cache_is_fresh(self) -> bool:
        try:
            mtime = self.cache_path.stat().st_mtime
        except OSError:
            return False
        return (time.time() - mtime) < float(self.config.cache_ttl_seconds)

    def invalidate(self) -> None:
        self.cache_path.unlink(missing_ok=True)

    def get_cached_releases(
        self,
        force_refresh: bool = False,
        *,
        cancel: CancelToken | None = None,
    ) -> list[Release]:
        check_cancelled(cancel, "release cache read")
        if not force_refresh and self.cache_is_fresh():
            cached = self._read_cache()
            if cached is not None:
                logger.debug("using cached releases from %s", self.cache_path)
                return cached

        with FileLock(cache_lock_path(self.cache_path)):
            if not force_refresh and self.cache_is_fresh():
                # Another process refreshed while this one waited on the lock.
                cached = self._read_cache()
                if cached is not None:
                    return cached
            logger.debug("fetching fresh releases from %s", self.config.releases_url)
            releases = self.get_releases(cancel=cancel)
            self._write_cache(releases)
        return releases

    def get_releases(self, *, cancel: CancelToken | None = None) -> list[Release]:
        url = self.config.releases_url
        per_page = max(int(self.config.per_page), 1)
        max_pages = max(int(self.config.max_pages), 1)
        raw: list[Any] = []
        for page in range(1, max_pages + 1):
            check_cancelled(cancel, "release list fetch")
            batch = self._fetch_page(url, page, per_page)
            raw.extend(batch)
            if len(batch) < per_page:
                break
        try:
            releases = [Release.from_dict(item) for item in raw]
        except (TypeError, ValueError) as exc:
            raise ReleaseFetchError(f"malformed release payload from {url}: {exc}", url) from exc
        try:
            return filter_releases(releases, self.config.min_version)
        except ValueError as exc:
            raise ConfigError(f"invalid min_version {self.config.min_version!r}: {exc}") from exc

    def _fetch_page(self, url: str, page: int, per_page: int) -> list[Any]:
        try:
            response = self.session.get(
                url,
                params={"page": page, "per_page": per_page},
                headers={"Accept": "application/vnd.github+json"},
                timeout=self.http_config.timeout,
            )
        except RequestException as exc:
            raise ReleaseFetchError(f"failed to fetch releases from {url}: {exc}", url) from exc
        with response:
            logger.debug("release API status=%s page=%s", response.status_code, page)
            if response.status_code == 403 and "rate limit" in (response.text or "").lower():
                raise RateLimitedError(url, response.status_code)
            if response.status_code != 200:
                raise ApiStatusError(url, response.status_code, error_body_snippet(response))
            try:
                payload = response.json()
            except ValueError as exc:
                raise ReleaseFetchError(f"failed to decode releases from {url}: {exc}", url) from exc
        if not isinstance(payload, list):
            raise ReleaseFetchError(f"expected a JSON array of releases from {url}", url)
        return payload

    def _read_cache(self) -> list[Release] | None:
        try:
            payload = json.loads(self.cache_path.read_text(encoding="utf-8"))
            if not isinstance(payload, list):
                raise ValueError("cache payload is not a JSON array")
            return [Release.from_dict(item) for item in payload]
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("ignoring unreadable release cache %s: %s", self.cache_path, exc)
            return None

    def _write_cache(self, releases: list[Release]) -> None:
        data = json.dumps([release.to_dict() for release in releases], ensure_ascii=False)
        directory = self.cache_path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.cache_path.name}-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(data)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(tmp_name, CACHE_FILE_MODE)
            os.replace(tmp_name, self.cache_path)
            tmp_name = None
        except OSError as exc:
            raise CacheWriteError(self.cache_path, str(exc)) from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
        logger.debug("cached %d releases to %s", len(releases), self.cache_path)


def get_cached_releases(
    force_refresh: bool,
    cache_path: Path,
    *,
    session: requests.Session | None = None,
    config: ReleasesConfig | None = None,
    cancel: CancelToken | None = None,
) -> list[Release]:
    cache = ReleaseCache(cache_path, session=session, config=config)
    return cache.get_cached_releases(force_refresh, cancel=cancel)
