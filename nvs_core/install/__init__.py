"""Download, checksum, extraction, and install orchestration."""

from .archive import ArchiveExtractor, detect_format, extract_archive, safe_output_path
from .checksum import ChecksumVerifier, sha256_file
from .downloader import Downloader, ProgressCounter
from .errors import (
    ArchiveDetectionFailedError,
    ChecksumDownloadFailedError,
    ChecksumFileEmptyError,
    ChecksumMismatchError,
    DownloadFailedError,
    IllegalArchivePathError,
    InstallError,
    UnsupportedArchiveFormatError,
    VersionNotInstalledError,
)
from .events import (
    CallbackObserver,
    EventBroadcaster,
    EventKind,
    InstallEvent,
    InstallObserver,
    RecordingObserver,
)
from .installer import (
    InstallOutcome,
    InstallResult,
    Installer,
    UpgradeInfo,
    check_upgrade,
    download_and_install,
    install_version,
    upgrade,
)
from .store import InstalledVersion, VersionStore, write_marker

__all__ = [
    "ArchiveDetectionFailedError",
    "ArchiveExtractor",
    "CallbackObserver",
    "ChecksumDownloadFailedError",
    "ChecksumFileEmptyError",
    "ChecksumMismatchError",
    "ChecksumVerifier",
    "DownloadFailedError",
    "Downloader",
    "EventBroadcaster",
    "EventKind",
    "IllegalArchivePathError",
    "InstallError",
    "InstallEvent",
    "InstallObserver",
    "InstallOutcome",
    "InstallResult",
    "InstalledVersion",
    "Installer",
    "ProgressCounter",
    "RecordingObserver",
    "UnsupportedArchiveFormatError",
    "UpgradeInfo",
    "VersionNotInstalledError",
    "VersionStore",
    "check_upgrade",
    "detect_format",
    "download_and_install",
    "extract_archive",
    "install_version",
    "safe_output_path",
    "sha256_file",
    "upgrade",
    "write_marker",
]
