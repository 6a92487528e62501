"""Release datatypes and release-source configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

STABLE = "stable"
NIGHTLY = "nightly"

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_REPOSITORY = "neovim/neovim"
DEFAULT_MIN_VERSION = "0.5.0"
DEFAULT_CACHE_TTL = 300.0


@dataclass(frozen=True)
class ReleasesConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    repository: str = DEFAULT_REPOSITORY
    min_version: str = DEFAULT_MIN_VERSION
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL
    per_page: int = 100
    max_pages: int = 10

    @property
    def releases_url(self) -> str:
        return f"{self.api_base_url.rstrip('/')}/repos/{self.repository.strip('/')}/releases"


@dataclass(frozen=True)
class Asset:
    name: str
    download_url: str
    size: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Asset":
        return cls(
            name=str(data.get("name") or ""),
            download_url=str(data.get("browser_download_url") or ""),
            size=int(data.get("size") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "browser_download_url": self.download_url, "size": self.size}


@dataclass(frozen=True)
class Release:
    tag_name: str
    prerelease: bool = False
    assets: tuple[Asset, ...] = field(default_factory=tuple)
    published_at: str = ""
    commit_hash: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Release":
        if not isinstance(data, Mapping):
            raise TypeError("release entry must be a mapping")
        raw_assets = data.get("assets") or []
        if not isinstance(raw_assets, list):
            raise TypeError("release assets must be a list")
        return cls(
            tag_name=str(data.get("tag_name") or ""),
            prerelease=bool(data.get("prerelease", False)),
            assets=tuple(Asset.from_dict(item) for item in raw_assets if isinstance(item, Mapping)),
            published_at=str(data.get("published_at") or ""),
            commit_hash=str(data.get("target_commitish") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag_name": self.tag_name,
            "prerelease": self.prerelease,
            "assets": [asset.to_dict() for asset in self.assets],
            "published_at": self.published_at,
            "target_commitish": self.commit_hash,
        }

    def published_datetime(self) -> datetime | None:
        value = self.published_at.strip()
        if not value:
            return None
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def find_asset(self, name: str) -> Asset | None:
        for asset in self.assets:
            if asset.name == name:
                return asset
        return None
