"""Cooperative cancellation for long-running I/O."""

from __future__ import annotations

import threading

from .errors import OperationCancelledError


class CancelToken:
    """Thread-safe flag checked between chunks of network and file I/O."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str) -> None:
        if self._event.is_set():
            raise OperationCancelledError(stage)


def check_cancelled(cancel: CancelToken | None, stage: str) -> None:
    if cancel is not None:
        cancel.raise_if_cancelled(stage)
