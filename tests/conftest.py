import os
import threading
import time

import pytest

os.environ.setdefault("PYNPUT_BACKEND", "dummy")

from clickengine.errors import DeviceUnavailable, InjectionFailed
from clickengine.injector import InputInjector
from clickengine.models import MouseButton


class RecordingInjector(InputInjector):
    name = "recording"

    def __init__(self, fail_open: bool = False, fail_after: int | None = None) -> None:
        self.fail_open = fail_open
        self.fail_after = fail_after
        self.events: list[tuple] = []
        self.opened = False
        self.closed = False
        self._lock = threading.Lock()
        self.pressed_event = threading.Event()

    def open(self) -> None:
        if self.fail_open:
            raise DeviceUnavailable("no /dev/uinput", "grant access")
        self.opened = True

    def _record(self, event: tuple) -> None:
        with self._lock:
            if self.fail_after is not None and len(self.events) >= self.fail_after:
                raise InjectionFailed("device went away")
            self.events.append(event)

    def press(self, button: MouseButton) -> None:
        self._record(("press", button))
        self.pressed_event.set()

    def release(self, button: MouseButton) -> None:
        self._record(("release", button))

    def move(self, dx: int, dy: int) -> None:
        self._record(("move", dx, dy))

    def sync(self) -> None:
        self._record(("sync",))

    def close(self) -> None:
        self.closed = True

    def snapshot(self) -> list[tuple]:
        with self._lock:
            return list(self.events)

    def actions(self) -> list[tuple]:
        return [event for event in self.snapshot() if event[0] != "sync"]


@pytest.fixture
def injector() -> RecordingInjector:
    return RecordingInjector()


def wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()
