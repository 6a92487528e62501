"""Download, verify, extract, and mark a Neovim release as installed."""

from __future__ import annotations

import enum
import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import requests

from nvs_core.cancellation import CancelToken, check_cancelled
from nvs_core.http import HttpConfig, build_session
from nvs_core.releases import (
    NIGHTLY,
    STABLE,
    ReleaseCache,
    ReleasesConfig,
    VersionResolver,
    get_asset_url,
    get_checksum_url,
    get_release_identifier,
    normalize_version,
)

from .archive import ArchiveExtractor
from .checksum import ChecksumVerifier
from .downloader import Downloader, ProgressCallback
from .errors import InstallError
from .events import (
    PHASE_DONE,
    PHASE_DOWNLOADING,
    PHASE_EXTRACTING,
    PHASE_VERIFYING,
    PHASE_WRITING_VERSION,
    CallbackObserver,
    EventBroadcaster,
    InstallObserver,
)
from .store import VersionStore, write_marker

if TYPE_CHECKING:
    from nvs_core.config import NvsConfig

logger = logging.getLogger(__name__)

PhaseCallback = Callable[[str], None]


class InstallOutcome(enum.Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"


@dataclass(frozen=True)
class InstallResult:
    outcome: InstallOutcome
    install_name: str
    release_identifier: str
    tag: str
    path: Path


@dataclass(frozen=True)
class UpgradeInfo:
    has_update: bool
    installed: str
    latest: str


class Installer:
    """Runs the install pipeline for one release.

    A target directory only ever appears complete: everything is unpacked
    into a hidden staging directory next to it, the marker is written there,
    and the staging tree is renamed into place last.
    """

    def __init__(
        self,
        downloader: Downloader | None = None,
        verifier: ChecksumVerifier | None = None,
        extractor: ArchiveExtractor | None = None,
        store: VersionStore | None = None,
        resolver: VersionResolver | None = None,
        *,
        session: requests.Session | None = None,
        http_config: HttpConfig | None = None,
        releases_config: ReleasesConfig | None = None,
    ) -> None:
        self.http_config = http_config or HttpConfig()
        self.releases_config = releases_config or ReleasesConfig()
        self.session = session or build_session(self.http_config)
        self.downloader = downloader or Downloader(self.session, self.http_config)
        self.verifier = verifier or ChecksumVerifier(self.session, self.http_config)
        self.extractor = extractor or ArchiveExtractor()
        self.store = store
        self.resolver = resolver

    @classmethod
    def from_config(cls, config: "NvsConfig", *, session: requests.Session | None = None) -> "Installer":
        session = session or build_session(config.http)
        cache = ReleaseCache(config.cache_file, session=session, config=config.releases, http_config=config.http)
        return cls(
            Downloader(session, config.http),
            ChecksumVerifier(session, config.http),
            ArchiveExtractor(),
            VersionStore(config.versions_dir),
            VersionResolver(cache),
            session=session,
            http_config=config.http,
            releases_config=config.releases,
        )

    def _store_for(self, versions_dir: Path) -> VersionStore:
        versions_dir = Path(versions_dir)
        if self.store is not None and self.store.versions_dir == versions_dir:
            return self.store
        return VersionStore(versions_dir)

    def _resolver_for(self, cache_file_path: Path) -> VersionResolver:
        cache_file_path = Path(cache_file_path)
        if self.resolver is not None and self.resolver.cache.cache_path == cache_file_path:
            return self.resolver
        cache = ReleaseCache(
            cache_file_path,
            session=self.session,
            config=self.releases_config,
            http_config=self.http_config,
        )
        return VersionResolver(cache)

    def download_and_install(
        self,
        versions_dir: Path,
        install_name: str,
        asset_url: str,
        checksum_url: str,
        release_identifier: str,
        *,
        observer: InstallObserver | None = None,
        progress_callback: ProgressCallback | None = None,
        phase_callback: PhaseCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> Path:
        store = self._store_for(versions_dir)
        target = store.install_dir(install_name)
        events = EventBroadcaster(observer)
        if progress_callback is not None or phase_callback is not None:
            events.subscribe(CallbackObserver(progress_callback, phase_callback))

        try:
            store.versions_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InstallError(f"cannot create versions directory {store.versions_dir}: {exc}", install_name) from exc

        with store.lock_for(install_name):
            staging = self._make_staging_dir(store.versions_dir, install_name)
            try:
                with tempfile.TemporaryFile(prefix="nvs-download-") as archive:
                    events.phase_started(PHASE_DOWNLOADING)
                    self.downloader.download_file(asset_url, archive, events.progress, cancel=cancel)

                    if checksum_url:
                        events.phase_started(PHASE_VERIFYING)
                        self.verifier.verify_checksum(archive, checksum_url, cancel=cancel)
                    else:
                        logger.debug("no checksum published for %s; skipping verification", install_name)

                    events.phase_started(PHASE_EXTRACTING)
                    self.extractor.extract_archive(archive, staging, cancel=cancel)

                events.phase_started(PHASE_WRITING_VERSION)
                write_marker(staging, release_identifier)

                check_cancelled(cancel, "install")
                if target.exists():
                    logger.debug("replacing existing install at %s", target)
                    shutil.rmtree(target)
                staging.replace(target)
            except OSError as exc:
                _remove_staging(staging)
                raise InstallError(f"failed to install {install_name}: {exc}", install_name) from exc
            except BaseException:
                _remove_staging(staging)
                raise

        events.phase_started(PHASE_DONE)
        logger.debug("installed %s (%s) into %s", install_name, release_identifier, target)
        return target

    @staticmethod
    def _make_staging_dir(versions_dir: Path, install_name: str) -> Path:
        try:
            staging = Path(tempfile.mkdtemp(prefix=f".{install_name}-staging-", dir=versions_dir))
            staging.chmod(0o755)
            return staging
        except OSError as exc:
            raise InstallError(f"cannot create staging directory in {versions_dir}: {exc}", install_name) from exc

    def install_version(
        self,
        alias: str,
        versions_dir: Path,
        cache_file_path: Path,
        *,
        observer: InstallObserver | None = None,
        progress_callback: ProgressCallback | None = None,
        phase_callback: PhaseCallback | None = None,
        force: bool = False,
        cancel: CancelToken | None = None,
    ) -> InstallResult:
        store = self._store_for(versions_dir)
        install_name = normalize_version(alias)
        release = self._resolver_for(cache_file_path).resolve_version(alias, cancel=cancel)
        identifier = get_release_identifier(release, alias)

        if not force and store.is_installed(install_name):
            logger.debug("%s already installed at %s", install_name, store.install_dir(install_name))
            return InstallResult(
                outcome=InstallOutcome.ALREADY_INSTALLED,
                install_name=install_name,
                release_identifier=store.read_marker(install_name),
                tag=release.tag_name,
                path=store.install_dir(install_name),
            )

        asset_url, pattern = get_asset_url(release)
        checksum_url = get_checksum_url(release, pattern)
        path = self.download_and_install(
            store.versions_dir,
            install_name,
            asset_url,
            checksum_url,
            identifier,
            observer=observer,
            progress_callback=progress_callback,
            phase_callback=phase_callback,
            cancel=cancel,
        )
        return InstallResult(
            outcome=InstallOutcome.INSTALLED,
            install_name=install_name,
            release_identifier=identifier,
            tag=release.tag_name,
            path=path,
        )

    def check_upgrade(
        self,
        alias: str,
        versions_dir: Path,
        cache_file_path: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> UpgradeInfo:
        if alias not in (STABLE, NIGHTLY):
            raise InstallError(f"upgrades are only tracked for {STABLE!r} and {NIGHTLY!r}, not {alias!r}", alias)
        store = self._store_for(versions_dir)
        installed = store.read_marker(alias)
        resolver = self._resolver_for(cache_file_path)
        resolver.cache.get_cached_releases(True, cancel=cancel)
        release = resolver.resolve_version(alias, cancel=cancel)
        latest = get_release_identifier(release, alias)
        return UpgradeInfo(has_update=installed != latest, installed=installed, latest=latest)

    def upgrade(
        self,
        alias: str,
        versions_dir: Path,
        cache_file_path: Path,
        *,
        observer: InstallObserver | None = None,
        progress_callback: ProgressCallback | None = None,
        phase_callback: PhaseCallback | None = None,
        cancel: CancelToken | None = None,
    ) -> tuple[UpgradeInfo, InstallResult | None]:
        """Reinstall a rolling alias when its release moved on.

        Returns the upgrade check together with the install result, or ``None``
        when the installed build is already the latest.
        """
        info = self.check_upgrade(alias, versions_dir, cache_file_path, cancel=cancel)
        if not info.has_update:
            logger.debug("%s is up to date (%s)", alias, info.installed)
            return info, None
        logger.info("upgrading %s from %s to %s", alias, info.installed, info.latest)
        result = self.install_version(
            alias,
            versions_dir,
            cache_file_path,
            observer=observer,
            progress_callback=progress_callback,
            phase_callback=phase_callback,
            force=True,
            cancel=cancel,
        )
        return info, result


def _remove_staging(staging: Path) -> None:
    try:
        shutil.rmtree(staging)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("failed to remove staging directory %s: %s", staging, exc)


def download_and_install(
    versions_dir: Path,
    install_name: str,
    asset_url: str,
    checksum_url: str,
    release_identifier: str,
    *,
    observer: InstallObserver | None = None,
    progress_callback: ProgressCallback | None = None,
    phase_callback: PhaseCallback | None = None,
    cancel: CancelToken | None = None,
    session: requests.Session | None = None,
) -> Path:
    return Installer(session=session).download_and_install(
        versions_dir,
        install_name,
        asset_url,
        checksum_url,
        release_identifier,
        observer=observer,
        progress_callback=progress_callback,
        phase_callback=phase_callback,
        cancel=cancel,
    )


def install_version(
    alias: str,
    versions_dir: Path,
    cache_file_path: Path,
    *,
    observer: InstallObserver | None = None,
    progress_callback: ProgressCallback | None = None,
    force: bool = False,
    cancel: CancelToken | None = None,
    session: requests.Session | None = None,
) -> InstallResult:
    return Installer(session=session).install_version(
        alias,
        versions_dir,
        cache_file_path,
        observer=observer,
        progress_callback=progress_callback,
        force=force,
        cancel=cancel,
    )


def check_upgrade(
    alias: str,
    versions_dir: Path,
    cache_path: Path,
    *,
    session: requests.Session | None = None,
    config: ReleasesConfig | None = None,
    cancel: CancelToken | None = None,
) -> UpgradeInfo:
    return Installer(session=session, releases_config=config).check_upgrade(
        alias, versions_dir, cache_path, cancel=cancel
    )


def upgrade(
    alias: str,
    versions_dir: Path,
    cache_path: Path,
    *,
    observer: InstallObserver | None = None,
    progress_callback: ProgressCallback | None = None,
    session: requests.Session | None = None,
    config: ReleasesConfig | None = None,
    cancel: CancelToken | None = None,
) -> tuple[UpgradeInfo, InstallResult | None]:
    return Installer(session=session, releases_config=config).upgrade(
        alias,
        versions_dir,
        cache_path,
        observer=observer,
        progress_callback=progress_callback,
        cancel=cancel,
    )
