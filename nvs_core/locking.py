"""Advisory inter-process file locks."""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import IO

from .errors import LockTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT = 60.0
_POLL_INTERVAL = 0.05


class FileLock:
    """Exclusive lock on ``path`` using fcntl on POSIX and msvcrt on Windows.

    The lock file itself is never removed; only the OS-level lock matters.
    """

    def __init__(self, path: Path, *, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self._handle: IO[str] | None = None

    @property
    def locked(self) -> bool:
        return self._handle is not None

    def acquire(self) -> None:
        if self._handle is not None:
            raise RuntimeError(f"lock already held: {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + max(self.timeout, 0.0)
        while True:
            handle = open(self.path, "a+", encoding="utf-8")
            try:
                _lock(handle)
            except OSError:
                handle.close()
                if time.monotonic() >= deadline:
                    raise LockTimeoutError(self.path, self.timeout) from None
                time.sleep(_POLL_INTERVAL)
                continue
            self._handle = handle
            logger.debug("acquired lock %s", self.path)
            return

    def release(self) -> None:
        handle = self._handle
        if handle is None:
            return
        self._handle = None
        try:
            _unlock(handle)
        finally:
            handle.close()
        logger.debug("released lock %s", self.path)

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


if os.name == "nt":
    import msvcrt

    def _lock(handle: IO[str]) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)

    def _unlock(handle: IO[str]) -> None:
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)

else:
    import fcntl

    def _lock(handle: IO[str]) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)

    def _unlock(handle: IO[str]) -> None:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
