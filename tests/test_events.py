from __future__ import annotations

import pytest

from nvs_core.install import CallbackObserver, EventBroadcaster, EventKind, InstallEvent, RecordingObserver


def test_broadcaster_fans_out_in_order() -> None:
    first = RecordingObserver()
    second = RecordingObserver()
    events = EventBroadcaster(first, None)
    events.subscribe(second)

    events.phase_started("Downloading asset...")
    events.progress(42)

    expected = [
        InstallEvent(EventKind.PHASE, "Downloading asset..."),
        InstallEvent(EventKind.PROGRESS, "Downloading asset...", 42),
    ]
    assert first.events == expected
    assert second.events == expected


def test_callback_observer_routes_by_kind() -> None:
    phases: list[str] = []
    percents: list[int] = []
    observer = CallbackObserver(percents.append, phases.append)

    observer.on_event(InstallEvent(EventKind.PHASE, "Done"))
    observer.on_event(InstallEvent(EventKind.PROGRESS, "Downloading asset...", 7))

    assert phases == ["Done"]
    assert percents == [7]


def test_subscriber_errors_are_not_swallowed() -> None:
    class _Broken:
        def on_event(self, event: InstallEvent) -> None:
            raise ValueError("bad subscriber")

    events = EventBroadcaster(_Broken())

    with pytest.raises(ValueError):
        events.phase_started("Done")
