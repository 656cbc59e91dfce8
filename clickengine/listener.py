import logging
from collections.abc import Callable

from pynput import keyboard

from clickengine.hotkeys import ModifierTracker
from clickengine.models import KeyPhase, Modifier


logger = logging.getLogger(__name__)


KeyEventSink = Callable[[str, Modifier, KeyPhase], None]


def key_to_raw_name(key: keyboard.Key | keyboard.KeyCode | None) -> str | None:
    if key is None:
        return None

    if isinstance(key, keyboard.KeyCode):
        if key.char is not None:
            return key.char.lower()
        if key.vk is not None:
            return f"vk{key.vk}"
        return None

    # Key members carry the platform KeyCode as value; the member name is the portable one.
    name = getattr(key, "name", None)
    return name.lower() if name else None


class HotkeyListener:
    """Global keyboard hook that forwards raw key events to the engine."""

    def __init__(self, sink: KeyEventSink) -> None:
        self.sink = sink
        self.tracker = ModifierTracker()
        self._listener: keyboard.Listener | None = None

    @property
    def running(self) -> bool:
        return self._listener is not None and self._listener.running

    def start(self) -> None:
        if self._listener is not None:
            return

        self._listener = keyboard.Listener(on_press=self._on_press, on_release=self._on_release)
        self._listener.start()
        logger.info("Global hotkey listener started")

    def stop(self) -> None:
        if self._listener is None:
            return

        self._listener.stop()
        self._listener = None

    def _on_press(self, key: keyboard.Key | keyboard.KeyCode | None) -> None:
        raw_name = key_to_raw_name(key)
        if raw_name is None:
            return

        modifiers = self.tracker.press(raw_name)
        if modifiers is None:
            return
        self.sink(raw_name, modifiers, KeyPhase.PRESSED)

    def _on_release(self, key: keyboard.Key | keyboard.KeyCode | None) -> None:
        raw_name = key_to_raw_name(key)
        if raw_name is None:
            return

        modifiers = self.tracker.release(raw_name)
        self.sink(raw_name, modifiers, KeyPhase.RELEASED)
