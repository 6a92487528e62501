"""Installed-version bookkeeping on the filesystem."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from nvs_core.locking import FileLock

from .errors import VersionNotInstalledError

logger = logging.getLogger(__name__)

VERSION_FILE = "version.txt"
CURRENT_LINK = "current"
MARKER_FILE_MODE = 0o644


@dataclass(frozen=True)
class InstalledVersion:
    name: str
    path: Path
    identifier: str


class VersionStore:
    """Layout: ``<versions_dir>/<name>/version.txt`` marks a complete install."""

    def __init__(self, versions_dir: Path) -> None:
        self.versions_dir = Path(versions_dir)

    def install_dir(self, name: str) -> Path:
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise ValueError(f"invalid install name: {name!r}")
        return self.versions_dir / name

    def lock_for(self, name: str) -> FileLock:
        return FileLock(self.versions_dir / f".{name}.lock")

    def marker_path(self, name: str) -> Path:
        return self.install_dir(name) / VERSION_FILE

    def is_installed(self, name: str) -> bool:
        return self.marker_path(name).is_file()

    def read_marker(self, name: str) -> str:
        path = self.marker_path(name)
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError as exc:
            raise VersionNotInstalledError(name) from exc

    def list_installed(self) -> list[InstalledVersion]:
        if not self.versions_dir.is_dir():
            return []
        out: list[InstalledVersion] = []
        for entry in sorted(self.versions_dir.iterdir(), key=lambda item: item.name):
            if entry.name.startswith(".") or entry.name == CURRENT_LINK or not entry.is_dir():
                continue
            marker = entry / VERSION_FILE
            if not marker.is_file():
                logger.debug("skipping %s: no version marker", entry)
                continue
            out.append(
                InstalledVersion(
                    name=entry.name,
                    path=entry,
                    identifier=marker.read_text(encoding="utf-8").strip(),
                )
            )
        return out

    def uninstall(self, name: str) -> Path:
        target = self.install_dir(name)
        with self.lock_for(name):
            if not target.is_dir():
                raise VersionNotInstalledError(name)
            shutil.rmtree(target)
        logger.debug("removed %s", target)
        return target


def write_marker(install_dir: Path, release_identifier: str) -> Path:
    path = Path(install_dir) / VERSION_FILE
    path.write_text(release_identifier, encoding="utf-8")
    path.chmod(MARKER_FILE_MODE)
    return path
