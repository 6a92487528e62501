from __future__ import annotations

from pathlib import Path

import pytest

from nvs_core.config import load_config
from nvs_core.errors import ConfigError


def test_defaults_follow_environment(tmp_path: Path) -> None:
    environ = {
        "NVS_CONFIG_DIR": str(tmp_path / "config"),
        "NVS_CACHE_DIR": str(tmp_path / "cache"),
    }

    config = load_config(environ)

    assert config.versions_dir == tmp_path / "config" / "versions"
    assert config.cache_file == tmp_path / "cache" / "releases.json"
    assert config.releases.repository == "neovim/neovim"
    assert config.releases.cache_ttl_seconds == 300
    assert config.releases.min_version == "0.5.0"
    assert config.http.token is None


def test_versions_dir_override(tmp_path: Path) -> None:
    config = load_config(
        {
            "NVS_CONFIG_DIR": str(tmp_path / "config"),
            "NVS_CACHE_DIR": str(tmp_path / "cache"),
            "NVS_VERSIONS_DIR": str(tmp_path / "elsewhere"),
        }
    )

    assert config.versions_dir == tmp_path / "elsewhere"


def test_config_toml_is_applied(tmp_path: Path) -> None:
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(
        """[http]
timeout_seconds = 5
user_agent = "nvs-test"
token = "${NVS_TEST_TOKEN}"

[releases]
api_base_url = "http://127.0.0.1:8080"
repository = "example/neovim"
cache_ttl_seconds = 60
per_page = 50
""",
        encoding="utf-8",
    )

    config = load_config(
        {
            "NVS_CONFIG_DIR": str(config_dir),
            "NVS_CACHE_DIR": str(tmp_path / "cache"),
            "NVS_TEST_TOKEN": "secret",
        }
    )

    assert config.http.timeout_seconds == 5.0
    assert config.http.user_agent == "nvs-test"
    assert config.http.token == "secret"
    assert config.releases.releases_url == "http://127.0.0.1:8080/repos/example/neovim/releases"
    assert config.releases.cache_ttl_seconds == 60.0
    assert config.releases.per_page == 50


def test_invalid_toml_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / "config.toml").write_text("[http\ntimeout_seconds = ", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_config({"NVS_CONFIG_DIR": str(tmp_path), "NVS_CACHE_DIR": str(tmp_path / "cache")})
    assert excinfo.value.path == tmp_path / "config.toml"


def test_invalid_values_raise_config_error(tmp_path: Path) -> None:
    (tmp_path / "config.toml").write_text('[releases]\ncache_ttl_seconds = "soon"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="cache_ttl_seconds"):
        load_config({"NVS_CONFIG_DIR": str(tmp_path), "NVS_CACHE_DIR": str(tmp_path / "cache")})


def test_non_semver_min_version_raises_config_error(tmp_path: Path) -> None:
    (tmp_path / "config.toml").write_text('[releases]\nmin_version = "latest"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="min_version"):
        load_config({"NVS_CONFIG_DIR": str(tmp_path), "NVS_CACHE_DIR": str(tmp_path / "cache")})
