from __future__ import annotations

from typing import Any, Callable


class ManualTimer:
    def __init__(self, delay_sec: float, callback: Callable[..., Any], args: tuple) -> None:
        self.delay_sec = delay_sec
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        # Runs even after cancel(), like a scheduler that lost the race.
        self.fired = True
        self.callback(*self.args)


class ManualScheduler:
    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def call_later(self, delay_sec: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(delay_sec, callback, args)
        self.timers.append(timer)
        return timer

    def sleep(self, seconds: float) -> None:
        pass

    @property
    def latest(self) -> ManualTimer:
        return self.timers[-1]

    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if t.pending]


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingBroadcaster:
    def __init__(self) -> None:
        self.room_events: list[tuple[str, str, Any]] = []
        self.client_events: list[tuple[str, str, Any]] = []
        self.subscriptions: list[tuple[str, str]] = []

    def subscribe(self, sid: str, room_code: str) -> None:
        self.subscriptions.append((sid, room_code))

    def to_room(self, room_code: str, event: str, payload: Any) -> None:
        self.room_events.append((room_code, event, payload))

    def to_client(self, sid: str, event: str, payload: Any) -> None:
        self.client_events.append((sid, event, payload))

    def events(self, name: str) -> list[Any]:
        return [payload for _, event, payload in self.room_events if event == name]

    def toasts(self) -> list[str]:
        return self.events("toast")

    def clear(self) -> None:
        self.room_events.clear()
        self.client_events.clear()


def sample_answers(letter: str) -> dict[str, str]:
    """Five distinct answers that pass the heuristic validator for ``letter``."""
    l = letter.lower()
    return {
        "name": f"{l}amo",
        "place": f"{l}elo",
        "animal": f"{l}ino",
        "thing": f"{l}oru",
        "movie": f"{l}upa",
    }
