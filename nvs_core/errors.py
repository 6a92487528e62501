"""Error taxonomy shared by the release and install layers."""

from __future__ import annotations

from pathlib import Path


class NvsError(Exception):
    """Base error. ``kind`` identifies the variant without string matching."""

    kind = "nvs"


class OperationCancelledError(NvsError):
    kind = "cancelled"

    def __init__(self, stage: str) -> None:
        super().__init__(f"operation cancelled during {stage}")
        self.stage = stage


class LockTimeoutError(NvsError):
    kind = "lock_timeout"

    def __init__(self, path: Path, timeout: float) -> None:
        super().__init__(f"timed out after {timeout:.1f}s waiting for lock {path}")
        self.path = path
        self.timeout = timeout


class ConfigError(NvsError):
    kind = "config"

    def __init__(self, message: str, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path
