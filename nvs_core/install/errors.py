"""Errors raised by the download, verify, and extract pipeline."""

from __future__ import annotations

from nvs_core.errors import NvsError


class InstallError(NvsError):
    kind = "install_failed"

    def __init__(self, message: str, install_name: str | None = None) -> None:
        super().__init__(message)
        self.install_name = install_name


class DownloadFailedError(InstallError):
    kind = "download_failed"

    def __init__(self, url: str, status_code: int | None = None, detail: str = "") -> None:
        if status_code is not None:
            message = f"download failed with status {status_code}: {url}"
        else:
            message = f"download failed: {url}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ChecksumDownloadFailedError(InstallError):
    kind = "checksum_download_failed"

    def __init__(self, url: str, status_code: int | None = None, detail: str = "") -> None:
        if status_code is not None:
            message = f"checksum download failed with status {status_code}: {url}"
        else:
            message = f"checksum download failed: {url}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ChecksumFileEmptyError(InstallError):
    kind = "checksum_file_empty"

    def __init__(self, url: str) -> None:
        super().__init__(f"checksum file is empty: {url}")
        self.url = url


class ChecksumMismatchError(InstallError):
    kind = "checksum_mismatch"

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"checksum mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class ArchiveDetectionFailedError(InstallError):
    kind = "archive_detection_failed"


class UnsupportedArchiveFormatError(InstallError):
    kind = "unsupported_archive_format"

    def __init__(self, signature: bytes) -> None:
        super().__init__(f"unsupported archive format (signature {signature[:8].hex()})")
        self.signature = signature


class IllegalArchivePathError(InstallError):
    kind = "illegal_archive_path"

    def __init__(self, path: str) -> None:
        super().__init__(f"archive entry escapes destination: {path}")
        self.path = path


class VersionNotInstalledError(InstallError):
    kind = "not_installed"

    def __init__(self, name: str) -> None:
        super().__init__(f"version not installed: {name}", install_name=name)
        self.name = name
