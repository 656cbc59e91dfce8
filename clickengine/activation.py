import logging
import random
import threading
from collections.abc import Callable

from clickengine.config import SCHEDULER_STOP_TIMEOUT
from clickengine.errors import InjectionFailed
from clickengine.injector import SharedDevice
from clickengine.models import ActivationMode, ActivationState, Hotkey, Profile, RuntimeActivation
from clickengine.run_log import RunLog, build_run_entry
from clickengine.scheduler import ClickScheduler


logger = logging.getLogger(__name__)


StatusCallback = Callable[[str], None]
StateCallback = Callable[[int | None], None]


class ActivationController:
    def __init__(
        self,
        device: SharedDevice,
        *,
        run_log: RunLog | None = None,
        rng_factory: Callable[[], random.Random] | None = None,
        status_callback: StatusCallback | None = None,
        state_callback: StateCallback | None = None,
        stop_timeout: float = SCHEDULER_STOP_TIMEOUT,
    ) -> None:
        self.device = device
        self.run_log = run_log
        self.rng_factory = rng_factory or random.Random
        self.status_callback = status_callback
        self.state_callback = state_callback
        self.stop_timeout = stop_timeout

        self._dispatch_lock = threading.RLock()
        self._state_lock = threading.Lock()
        self._scheduler: ClickScheduler | None = None

    def _set_status(self, text: str) -> None:
        if self.status_callback is not None:
            self.status_callback(text)

    def _notify_state(self) -> None:
        if self.state_callback is not None:
            self.state_callback(self.active_index)

    @property
    def current(self) -> RuntimeActivation | None:
        with self._state_lock:
            if self._scheduler is None:
                return None
            return self._scheduler.activation

    @property
    def active_index(self) -> int | None:
        activation = self.current
        if activation is None:
            return None
        return activation.profile_index

    def state_of(self, profile_index: int) -> ActivationState:
        if self.active_index == profile_index:
            return ActivationState.ACTIVE
        return ActivationState.IDLE

    def press(self, profile_index: int, profile: Profile) -> ActivationState:
        with self._dispatch_lock:
            current = self.current
            if current is not None and current.profile_index == profile_index:
                if current.profile.activation == ActivationMode.TOGGLE:
                    return self._deactivate_or_report(current)
                return ActivationState.ACTIVE

            if current is not None and not self.deactivate("superseded"):
                self._set_status(f"Cannot start '{profile.name}': previous profile did not stop")
                return ActivationState.IDLE

            return self._activate(profile_index, profile)

    def release(self, hotkey: Hotkey) -> ActivationState:
        with self._dispatch_lock:
            current = self.current
            if current is None:
                return ActivationState.IDLE

            if current.profile.activation != ActivationMode.HOLD:
                return ActivationState.ACTIVE

            if current.profile.hotkey.key != hotkey.key:
                return ActivationState.ACTIVE

            return self._deactivate_or_report(current)

    def deactivate(self, reason: str = "deactivated") -> bool:
        with self._dispatch_lock:
            with self._state_lock:
                scheduler = self._scheduler

            if scheduler is None:
                return True

            if not scheduler.stop(reason, self.stop_timeout):
                return False

            with self._state_lock:
                cleared = self._scheduler is scheduler
                if cleared:
                    self._scheduler = None
            if cleared:
                self._notify_state()
            return True

    def _deactivate_or_report(self, current: RuntimeActivation) -> ActivationState:
        if self.deactivate("deactivated"):
            return ActivationState.IDLE

        logger.warning("%r is still clicking after a stop request", current.profile.name)
        self._set_status(f"'{current.profile.name}' is still stopping")
        return ActivationState.ACTIVE

    def _activate(self, profile_index: int, profile: Profile) -> ActivationState:
        if not self.device.available:
            error = self.device.error
            detail = error.describe() if error is not None else "input device is not open"
            logger.warning("Not activating %r: %s", profile.name, detail)
            self._set_status(f"Clicking unavailable: {detail}")
            return ActivationState.IDLE

        activation = RuntimeActivation(profile_index=profile_index, profile=profile)
        scheduler = ClickScheduler(
            activation,
            self.device,
            rng=self.rng_factory(),
            on_finished=self._on_scheduler_finished,
        )
        with self._state_lock:
            self._scheduler = scheduler
        scheduler.start()

        self._set_status(f"Active: {profile.name}")
        self._notify_state()
        return ActivationState.ACTIVE

    def _on_scheduler_finished(self, scheduler: ClickScheduler, error: InjectionFailed | None) -> None:
        if self.run_log is not None:
            self.run_log.append(build_run_entry(scheduler.activation, scheduler.stop_reason, error))

        cleared = False
        with self._state_lock:
            if self._scheduler is scheduler:
                self._scheduler = None
                cleared = True

        name = scheduler.activation.profile.name
        if error is not None:
            self._set_status(f"Clicking stopped for '{name}': {error}")
        else:
            self._set_status(f"Idle ({name} stopped)")

        if cleared:
            self._notify_state()
