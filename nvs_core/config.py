"""Directory layout and ``config.toml`` loading."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from nvs_core.errors import ConfigError
from nvs_core.http import HttpConfig
from nvs_core.releases.models import ReleasesConfig
from nvs_core.releases.versions import parse_semver

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.toml"
CACHE_FILENAME = "releases.json"
VERSIONS_DIRNAME = "versions"

ENV_CONFIG_DIR = "NVS_CONFIG_DIR"
ENV_CACHE_DIR = "NVS_CACHE_DIR"
ENV_VERSIONS_DIR = "NVS_VERSIONS_DIR"


@dataclass(frozen=True)
class NvsConfig:
    config_dir: Path
    cache_dir: Path
    versions_dir: Path
    http: HttpConfig = field(default_factory=HttpConfig)
    releases: ReleasesConfig = field(default_factory=ReleasesConfig)

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / CACHE_FILENAME

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILENAME


def _resolve_env_value(value: Any, environ: Mapping[str, str]) -> Any:
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_name = value[2:-1].strip()
        if env_name:
            return environ.get(env_name, "")
    return value


def _dir_from_env(environ: Mapping[str, str], name: str, default: Path) -> Path:
    raw = (environ.get(name) or "").strip()
    if not raw:
        return default
    return Path(raw).expanduser()


def _section(payload: Mapping[str, Any], name: str, path: Path) -> Mapping[str, Any]:
    section = payload.get(name)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{name}] must be a table", path)
    return section


def _string(section: Mapping[str, Any], key: str, default: str, environ: Mapping[str, str]) -> str:
    value = _resolve_env_value(section.get(key), environ)
    if value is None or value == "":
        return default
    return str(value).strip()


def _number(
    section: Mapping[str, Any],
    key: str,
    default: float,
    environ: Mapping[str, str],
    path: Path,
    *,
    cast: type = float,
) -> Any:
    value = _resolve_env_value(section.get(key), environ)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}", path)
    try:
        number = cast(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}", path) from exc
    if number <= 0:
        raise ConfigError(f"{key} must be positive, got {value!r}", path)
    return number


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid TOML in {path}: {exc}", path) from exc
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}", path) from exc


def load_config(environ: Mapping[str, str] | None = None) -> NvsConfig:
    environ = os.environ if environ is None else environ
    home = Path.home()
    config_dir = _dir_from_env(environ, ENV_CONFIG_DIR, home / ".config" / "nvs")
    cache_dir = _dir_from_env(environ, ENV_CACHE_DIR, home / ".cache" / "nvs")
    versions_dir = _dir_from_env(environ, ENV_VERSIONS_DIR, config_dir / VERSIONS_DIRNAME)

    path = config_dir / CONFIG_FILENAME
    payload = _read_toml(path)
    if payload:
        logger.debug("loaded configuration from %s", path)
    http_raw = _section(payload, "http", path)
    releases_raw = _section(payload, "releases", path)

    http_defaults = HttpConfig()
    token = _string(http_raw, "token", "", environ)
    http = HttpConfig(
        timeout_seconds=_number(http_raw, "timeout_seconds", http_defaults.timeout_seconds, environ, path),
        connect_timeout_seconds=_number(
            http_raw, "connect_timeout_seconds", http_defaults.connect_timeout_seconds, environ, path
        ),
        user_agent=_string(http_raw, "user_agent", http_defaults.user_agent, environ),
        token=token or None,
    )

    defaults = ReleasesConfig()
    releases = ReleasesConfig(
        api_base_url=_string(releases_raw, "api_base_url", defaults.api_base_url, environ),
        repository=_string(releases_raw, "repository", defaults.repository, environ),
        min_version=_string(releases_raw, "min_version", defaults.min_version, environ),
        cache_ttl_seconds=_number(releases_raw, "cache_ttl_seconds", defaults.cache_ttl_seconds, environ, path),
        per_page=_number(releases_raw, "per_page", defaults.per_page, environ, path, cast=int),
        max_pages=_number(releases_raw, "max_pages", defaults.max_pages, environ, path, cast=int),
    )
    try:
        parse_semver(releases.min_version)
    except ValueError as exc:
        raise ConfigError(f"min_version must be a semantic version, got {releases.min_version!r}", path) from exc
    if "/" not in releases.repository.strip("/"):
        raise ConfigError(f"repository must look like 'owner/name', got {releases.repository!r}", path)

    return NvsConfig(
        config_dir=config_dir,
        cache_dir=cache_dir,
        versions_dir=versions_dir,
        http=http,
        releases=releases,
    )
