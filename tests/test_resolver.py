from __future__ import annotations

import json
from pathlib import Path

import pytest

from nvs_core.releases import (
    Asset,
    NoMatchingAssetError,
    Release,
    ReleaseCache,
    ReleaseNotFoundError,
    ReleasesConfig,
    UnsupportedPlatformError,
    VersionResolver,
    find_latest_nightly,
    find_latest_stable,
    find_specific_version,
    get_asset_url,
    get_checksum_url,
    get_installed_release_identifier,
    get_release_identifier,
)
from nvs_core.releases.platform import asset_patterns


def _resolver(tmp_path: Path, releases: list[Release]) -> VersionResolver:
    path = tmp_path / "releases.json"
    path.write_text(json.dumps([release.to_dict() for release in releases]), encoding="utf-8")
    return VersionResolver(ReleaseCache(path, config=ReleasesConfig(api_base_url="http://127.0.0.1:9")))


def _linux_release(tag: str, *, with_checksum: bool = True) -> Release:
    assets = [Asset("nvim-linux-x86_64.tar.gz", f"https://example.invalid/{tag}/nvim-linux-x86_64.tar.gz")]
    if with_checksum:
        assets.append(
            Asset(
                "nvim-linux-x86_64.tar.gz.sha256",
                f"https://example.invalid/{tag}/nvim-linux-x86_64.tar.gz.sha256",
            )
        )
    return Release(tag, assets=tuple(assets))


def test_stable_prefers_literal_stable_tag() -> None:
    releases = [Release("v0.10.0"), Release("stable"), Release("v0.9.5")]

    assert find_latest_stable(releases).tag_name == "stable"


def test_stable_falls_back_to_highest_semver() -> None:
    releases = [Release("v0.9.5"), Release("v0.10.0"), Release("v0.11.0-dev", prerelease=True)]

    assert find_latest_stable(releases).tag_name == "v0.10.0"


def test_nightly_prefers_literal_nightly_tag() -> None:
    releases = [
        Release("nightly-20240101", prerelease=True, published_at="2024-01-01T00:00:00Z"),
        Release("nightly", prerelease=True, published_at="2023-01-01T00:00:00Z"),
    ]

    assert find_latest_nightly(releases).tag_name == "nightly"


def test_nightly_falls_back_to_latest_published_prerelease() -> None:
    releases = [
        Release("nightly-20230101", prerelease=True, published_at="2023-01-01T00:00:00Z"),
        Release("nightly-20240301", prerelease=True, published_at="2024-03-01T00:00:00Z"),
        Release("v0.9.5", published_at="2025-01-01T00:00:00Z"),
    ]

    assert find_latest_nightly(releases).tag_name == "nightly-20240301"


def test_missing_rolling_release_raises() -> None:
    with pytest.raises(ReleaseNotFoundError):
        find_latest_nightly([Release("v0.9.5")])
    with pytest.raises(ReleaseNotFoundError):
        find_latest_stable([Release("nightly", prerelease=True)])


def test_specific_version_is_normalized() -> None:
    releases = [Release("v0.9.4"), Release("v0.9.5")]

    assert find_specific_version(releases, "0.9.5").tag_name == "v0.9.5"
    assert find_specific_version(releases, "v0.9.4").tag_name == "v0.9.4"
    with pytest.raises(ReleaseNotFoundError) as excinfo:
        find_specific_version(releases, "0.8.0")
    assert excinfo.value.alias == "v0.8.0"


def test_resolve_version_uses_cache(tmp_path: Path) -> None:
    resolver = _resolver(tmp_path, [Release("stable"), Release("v0.9.5")])

    assert resolver.resolve_version("stable").tag_name == "stable"
    assert resolver.resolve_version("0.9.5").tag_name == "v0.9.5"


def test_commit_hash_alias_is_not_resolvable(tmp_path: Path) -> None:
    resolver = _resolver(tmp_path, [Release("stable")])

    with pytest.raises(ReleaseNotFoundError, match="commit"):
        resolver.resolve_version("abc1234")


def test_release_identifier() -> None:
    assert get_release_identifier(Release("nightly-20230315", prerelease=True), "nightly") == "20230315"
    assert get_release_identifier(Release("nightly", prerelease=True), "nightly") == "nightly"
    assert get_release_identifier(Release("v0.9.5"), "stable") == "v0.9.5"


def test_asset_url_for_linux_x86_64() -> None:
    release = Release(
        "v0.9.0",
        assets=(
            Asset("v0.9.0-linux-x86_64.tar.gz.sha256", "https://example.invalid/sum"),
            Asset("v0.9.0-linux-x86_64.tar.gz", "https://example.invalid/asset"),
        ),
    )

    url, pattern = get_asset_url(release, "Linux", "x86_64")

    assert url == "https://example.invalid/asset"
    assert pattern == "linux-x86_64"


def test_asset_url_falls_back_to_legacy_pattern() -> None:
    release = Release("v0.9.0", assets=(Asset("nvim-linux64.tar.gz", "https://example.invalid/legacy"),))

    url, pattern = get_asset_url(release, "linux", "amd64")

    assert url == "https://example.invalid/legacy"
    assert pattern == "linux64"


def test_asset_url_without_match_raises() -> None:
    release = Release("v0.9.0", assets=(Asset("nvim-win64.zip", "https://example.invalid/win"),))

    with pytest.raises(NoMatchingAssetError):
        get_asset_url(release, "Darwin", "arm64")


def test_unsupported_platform() -> None:
    with pytest.raises(UnsupportedPlatformError):
        asset_patterns("linux", "riscv64")
    assert asset_patterns("Windows", "AMD64") == ("win64.zip",)


def test_checksum_url_present_and_absent() -> None:
    release = _linux_release("v0.9.5")
    bare = _linux_release("v0.9.5", with_checksum=False)

    assert get_checksum_url(release, "linux-x86_64") == (
        "https://example.invalid/v0.9.5/nvim-linux-x86_64.tar.gz.sha256"
    )
    assert get_checksum_url(bare, "linux-x86_64") == ""


def test_installed_release_identifier(tmp_path: Path) -> None:
    (tmp_path / "nightly").mkdir()
    (tmp_path / "nightly" / "version.txt").write_text("20230315\n", encoding="utf-8")

    assert get_installed_release_identifier(tmp_path, "nightly") == "20230315"
    with pytest.raises(FileNotFoundError):
        get_installed_release_identifier(tmp_path, "stable")


def test_asset_url_skips_appimage_listed_before_archive() -> None:
    release = Release(
        "v0.11.0",
        assets=(
            Asset("nvim-linux-x86_64.appimage", "https://example.invalid/appimage"),
            Asset("nvim-linux-x86_64.appimage.zsync", "https://example.invalid/zsync"),
            Asset("nvim-linux-x86_64.appimage.sha256", "https://example.invalid/appimage-sum"),
            Asset("nvim-linux-x86_64.tar.gz", "https://example.invalid/tarball"),
            Asset("nvim-linux-x86_64.tar.gz.sha256", "https://example.invalid/tarball-sum"),
        ),
    )

    url, pattern = get_asset_url(release, "Linux", "x86_64")

    assert url == "https://example.invalid/tarball"
    assert pattern == "linux-x86_64"
    assert get_checksum_url(release, pattern) == "https://example.invalid/tarball-sum"


def test_asset_url_with_only_appimage_raises() -> None:
    release = Release("v0.11.0", assets=(Asset("nvim-linux-x86_64.appimage", "https://example.invalid/appimage"),))

    with pytest.raises(NoMatchingAssetError):
        get_asset_url(release, "Linux", "x86_64")


def test_nightly_resolved_from_cache_yields_date_identifier(tmp_path: Path) -> None:
    resolver = _resolver(
        tmp_path,
        [
            Release("v0.9.5", published_at="2023-04-07T00:00:00Z"),
            Release("nightly-20230315", prerelease=True, published_at="2023-03-15T00:00:00Z"),
        ],
    )

    release = resolver.resolve_version("nightly")

    assert release.tag_name == "nightly-20230315"
    assert get_release_identifier(release, "nightly") == "20230315"
