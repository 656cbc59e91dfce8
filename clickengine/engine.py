import logging
import queue
import random
import threading
from collections.abc import Callable
from dataclasses import dataclass

from clickengine.activation import ActivationController, StateCallback, StatusCallback
from clickengine.config import DISPATCH_POLL_INTERVAL, SCHEDULER_STOP_TIMEOUT
from clickengine.errors import DeviceUnavailable, UnrecognizedKey
from clickengine.hotkeys import matches, normalize
from clickengine.injector import InputInjector, SharedDevice
from clickengine.models import ActivationState, Hotkey, KeyPhase, Modifier, Profile
from clickengine.run_log import RunLog
from clickengine.store import ProfileStore


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class KeyEvent:
    raw_key_name: str
    modifiers: Modifier
    phase: KeyPhase


@dataclass(frozen=True, slots=True)
class DeactivateRequest:
    reason: str = "deactivated"


def find_profile(hotkey: Hotkey, profiles: list[Profile]) -> tuple[int, Profile] | None:
    for index, profile in enumerate(profiles):
        if profile.active and matches(hotkey, profile):
            return index, profile
    return None


class ClickEngine:
    """Owns the virtual device, the activation state and the dispatch thread.

    ``on_key_event`` is the only inbound interface. It queues the event and
    returns immediately so the OS input thread never waits on device I/O.
    """

    def __init__(
        self,
        store: ProfileStore,
        injector: InputInjector,
        *,
        run_log: RunLog | None = None,
        rng_factory: Callable[[], random.Random] | None = None,
        status_callback: StatusCallback | None = None,
        state_callback: StateCallback | None = None,
        stop_timeout: float = SCHEDULER_STOP_TIMEOUT,
    ) -> None:
        self.store = store
        self.device = SharedDevice(injector)
        self.status_callback = status_callback
        self.controller = ActivationController(
            self.device,
            run_log=run_log,
            rng_factory=rng_factory,
            status_callback=status_callback,
            state_callback=state_callback,
            stop_timeout=stop_timeout,
        )

        self._events: queue.Queue[KeyEvent | DeactivateRequest] = queue.Queue()
        self._running = threading.Event()
        self._dispatch_thread: threading.Thread | None = None

    def _set_status(self, text: str) -> None:
        if self.status_callback is not None:
            self.status_callback(text)

    @property
    def device_error(self) -> DeviceUnavailable | None:
        return self.device.error

    def open_device(self) -> bool:
        try:
            self.device.open()
        except DeviceUnavailable as exc:
            logger.error("Virtual input device unavailable: %s", exc.describe())
            self._set_status(f"Clicking unavailable: {exc.describe()}")
            return False

        self._set_status(f"Input device ready ({self.device.injector.name})")
        return True

    def start(self) -> bool:
        device_ok = self.open_device()
        if self._dispatch_thread is None:
            self._running.set()
            self._dispatch_thread = threading.Thread(
                target=self._dispatch_loop, name="hotkey-dispatch", daemon=True
            )
            self._dispatch_thread.start()
        return device_ok

    def stop(self) -> None:
        self._running.clear()
        thread = self._dispatch_thread
        self._dispatch_thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=DISPATCH_POLL_INTERVAL * 5)

        self.controller.deactivate("engine_stopped")
        self.device.close()

    def on_key_event(self, raw_key_name: str, modifier_bitset: int | Modifier, phase: KeyPhase) -> None:
        self._events.put(KeyEvent(raw_key_name, Modifier(int(modifier_bitset)), KeyPhase(phase)))

    def request_deactivate(self, reason: str = "deactivated") -> None:
        self._events.put(DeactivateRequest(reason))

    def state_of(self, profile_index: int) -> ActivationState:
        return self.controller.state_of(profile_index)

    def _dispatch_loop(self) -> None:
        while self._running.is_set():
            try:
                event = self._events.get(timeout=DISPATCH_POLL_INTERVAL)
            except queue.Empty:
                continue

            try:
                if isinstance(event, DeactivateRequest):
                    self.controller.deactivate(event.reason)
                else:
                    self.handle_event(event)
            except Exception:
                logger.exception("Unhandled error dispatching %r", event)
            finally:
                self._events.task_done()

    def wait_idle(self) -> None:
        self._events.join()

    def handle_event(self, event: KeyEvent) -> ActivationState | None:
        try:
            hotkey = normalize(event.raw_key_name, event.modifiers)
        except UnrecognizedKey as exc:
            logger.debug("Ignoring key event: %s", exc)
            return None

        if event.phase == KeyPhase.RELEASED:
            return self.controller.release(hotkey)

        found = find_profile(hotkey, self.store.load())
        if found is None:
            return None

        index, profile = found
        return self.controller.press(index, profile)
