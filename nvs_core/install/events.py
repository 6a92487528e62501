"""Install progress events and their subscribers."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

logger = logging.getLogger(__name__)

PHASE_DOWNLOADING = "Downloading asset..."
PHASE_VERIFYING = "Verifying checksum..."
PHASE_EXTRACTING = "Extracting Archive..."
PHASE_WRITING_VERSION = "Writing version file..."
PHASE_DONE = "Done"


class EventKind(enum.Enum):
    PHASE = "phase"
    PROGRESS = "progress"


@dataclass(frozen=True)
class InstallEvent:
    kind: EventKind
    phase: str
    percent: int | None = None


class InstallObserver(Protocol):
    def on_event(self, event: InstallEvent) -> None: ...


class EventBroadcaster:
    """Fans each event out to every subscriber, in subscription order."""

    def __init__(self, *observers: InstallObserver | None) -> None:
        self._observers: list[InstallObserver] = [item for item in observers if item is not None]
        self._phase = ""

    def subscribe(self, observer: InstallObserver) -> None:
        self._observers.append(observer)

    def unsubscribe(self, observer: InstallObserver) -> None:
        self._observers.remove(observer)

    @property
    def phase(self) -> str:
        return self._phase

    def on_event(self, event: InstallEvent) -> None:
        for observer in list(self._observers):
            observer.on_event(event)

    def phase_started(self, phase: str) -> None:
        self._phase = phase
        logger.debug("install phase: %s", phase)
        self.on_event(InstallEvent(EventKind.PHASE, phase))

    def progress(self, percent: int) -> None:
        self.on_event(InstallEvent(EventKind.PROGRESS, self._phase, percent))


class CallbackObserver:
    """Adapts a ``progress(int)`` / ``phase(str)`` callback pair."""

    def __init__(
        self,
        progress_callback: Callable[[int], None] | None = None,
        phase_callback: Callable[[str], None] | None = None,
    ) -> None:
        self.progress_callback = progress_callback
        self.phase_callback = phase_callback

    def on_event(self, event: InstallEvent) -> None:
        if event.kind is EventKind.PHASE:
            if self.phase_callback is not None:
                self.phase_callback(event.phase)
        elif self.progress_callback is not None and event.percent is not None:
            self.progress_callback(event.percent)


class RecordingObserver:
    def __init__(self) -> None:
        self.events: list[InstallEvent] = []

    def on_event(self, event: InstallEvent) -> None:
        self.events.append(event)

    @property
    def phases(self) -> list[str]:
        return [event.phase for event in self.events if event.kind is EventKind.PHASE]

    @property
    def percents(self) -> list[int]:
        return [event.percent for event in self.events if event.kind is EventKind.PROGRESS and event.percent is not None]
