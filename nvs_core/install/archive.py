"""Archive extraction driven by content signature rather than file name."""

from __future__ import annotations

import io
import logging
import os
import stat
import tarfile
import zipfile
from pathlib import Path
from typing import BinaryIO

from nvs_core.cancellation import CancelToken, check_cancelled

from .errors import (
    ArchiveDetectionFailedError,
    IllegalArchivePathError,
    InstallError,
    UnsupportedArchiveFormatError,
)

logger = logging.getLogger(__name__)

SIGNATURE_SIZE = 262
FORMAT_ZIP = "zip"
FORMAT_TAR_GZ = "tar.gz"

_ZIP_SIGNATURES = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")
_GZIP_SIGNATURE = b"\x1f\x8b"
_DEFAULT_FILE_MODE = 0o644
_DEFAULT_DIR_MODE = 0o755
_COPY_CHUNK = 256 * 1024


def safe_output_path(base_dir: Path, relative_path: str) -> Path:
    target = (base_dir / relative_path).resolve()
    root = base_dir.resolve()
    if target == root:
        return target
    if root not in target.parents:
        raise IllegalArchivePathError(relative_path)
    return target


def detect_format(source: BinaryIO) -> str:
    try:
        source.seek(0, io.SEEK_SET)
        header = source.read(SIGNATURE_SIZE)
        source.seek(0, io.SEEK_SET)
    except OSError as exc:
        raise ArchiveDetectionFailedError(f"failed to read archive signature: {exc}") from exc
    if not header:
        raise ArchiveDetectionFailedError("archive is empty")
    if header.startswith(_ZIP_SIGNATURES):
        return FORMAT_ZIP
    if header.startswith(_GZIP_SIGNATURE):
        # Every gzip release asset is a compressed tarball.
        return FORMAT_TAR_GZ
    raise UnsupportedArchiveFormatError(header[:16])


class ArchiveExtractor:
    """Unpacks zip and tar.gz archives, rejecting entries that escape the root."""

    def extract_archive(
        self,
        source: BinaryIO,
        destination_dir: Path,
        *,
        cancel: CancelToken | None = None,
    ) -> str:
        destination_dir = Path(destination_dir)
        archive_format = detect_format(source)
        logger.debug("extracting %s archive into %s", archive_format, destination_dir)
        destination_dir.mkdir(parents=True, exist_ok=True)
        root = destination_dir.resolve()
        dir_modes: dict[Path, int] = {}
        if archive_format == FORMAT_ZIP:
            self._extract_zip(source, root, dir_modes, cancel)
        else:
            self._extract_tar_gz(source, root, dir_modes, cancel)
        # Deepest first, so a read-only parent never blocks its children.
        for path in sorted(dir_modes, key=lambda item: len(item.parts), reverse=True):
            os.chmod(path, dir_modes[path])
        return archive_format

    def _extract_zip(
        self,
        source: BinaryIO,
        root: Path,
        dir_modes: dict[Path, int],
        cancel: CancelToken | None,
    ) -> None:
        try:
            archive = zipfile.ZipFile(source)
        except zipfile.BadZipFile as exc:
            raise InstallError(f"failed to open zip archive: {exc}") from exc
        with archive:
            for info in archive.infolist():
                check_cancelled(cancel, "extraction")
                unix_mode = info.external_attr >> 16
                if stat.S_ISLNK(unix_mode):
                    logger.debug("skipping symlink entry %s", info.filename)
                    continue
                target = safe_output_path(root, info.filename)
                if info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    if target != root:
                        dir_modes[target] = (unix_mode & 0o777) or _DEFAULT_DIR_MODE
                    continue
                if target == root:
                    raise IllegalArchivePathError(info.filename)
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as reader:
                    _write_file(target, (unix_mode & 0o777) or _DEFAULT_FILE_MODE, reader, cancel)

    def _extract_tar_gz(
        self,
        source: BinaryIO,
        root: Path,
        dir_modes: dict[Path, int],
        cancel: CancelToken | None,
    ) -> None:
        try:
            archive = tarfile.open(fileobj=source, mode="r:gz")
        except (tarfile.TarError, OSError) as exc:
            raise InstallError(f"failed to open tar.gz archive: {exc}") from exc
        with archive:
            try:
                for member in archive:
                    check_cancelled(cancel, "extraction")
                    if not (member.isdir() or member.isreg()):
                        logger.debug("skipping unsupported tar entry %s (type %r)", member.name, member.type)
                        continue
                    target = safe_output_path(root, member.name)
                    if member.isdir():
                        target.mkdir(parents=True, exist_ok=True)
                        if target != root:
                            dir_modes[target] = (member.mode & 0o777) or _DEFAULT_DIR_MODE
                        continue
                    if target == root:
                        raise IllegalArchivePathError(member.name)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    reader = archive.extractfile(member)
                    if reader is None:
                        continue
                    with reader:
                        _write_file(target, (member.mode & 0o777) or _DEFAULT_FILE_MODE, reader, cancel)
            except tarfile.TarError as exc:
                raise InstallError(f"error reading tar archive: {exc}") from exc


def _write_file(target: Path, mode: int, reader: BinaryIO, cancel: CancelToken | None) -> None:
    fd = os.open(target, os.O_CREAT | os.O_WRONLY | os.O_TRUNC | getattr(os, "O_BINARY", 0), mode)
    with os.fdopen(fd, "wb") as handle:
        while True:
            check_cancelled(cancel, "extraction")
            chunk = reader.read(_COPY_CHUNK)
            if not chunk:
                break
            handle.write(chunk)
    os.chmod(target, mode)


def extract_archive(source: BinaryIO, destination_dir: Path, *, cancel: CancelToken | None = None) -> str:
    return ArchiveExtractor().extract_archive(source, destination_dir, cancel=cancel)
