import logging
import random
import threading
import time
from collections.abc import Callable

from clickengine.config import SCHEDULER_STOP_TIMEOUT
from clickengine.errors import InjectionFailed
from clickengine.injector import SharedDevice
from clickengine.models import MouseButton, Press, Release, RuntimeActivation
from clickengine.patterns import next_step


logger = logging.getLogger(__name__)


FinishedCallback = Callable[["ClickScheduler", InjectionFailed | None], None]


class ClickScheduler:
    def __init__(
        self,
        activation: RuntimeActivation,
        device: SharedDevice,
        *,
        rng: random.Random | None = None,
        on_finished: FinishedCallback | None = None,
    ) -> None:
        self.activation = activation
        self.device = device
        self.rng = rng or random.Random()
        self.on_finished = on_finished
        self.stop_reason = "deactivated"
        self.error: InjectionFailed | None = None

        self._stop_event = threading.Event()
        self._held: list[MouseButton] = []
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("scheduler already started")

        self._thread = threading.Thread(
            target=self._run,
            name=f"click-scheduler-{self.activation.profile.name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self, reason: str = "deactivated", timeout: float = SCHEDULER_STOP_TIMEOUT) -> bool:
        if not self._stop_event.is_set():
            self.stop_reason = reason
            self._stop_event.set()

        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True

        thread.join(timeout=timeout)
        if thread.is_alive():
            logger.error(
                "Scheduler for %r did not stop within %.1fs",
                self.activation.profile.name,
                timeout,
            )
            return False
        return True

    def _track(self, actions) -> None:
        for action in actions:
            if isinstance(action, Press):
                self.activation.presses += 1
                if action.button not in self._held:
                    self._held.append(action.button)
            elif isinstance(action, Release) and action.button in self._held:
                self._held.remove(action.button)

    def _release_held(self) -> None:
        if not self._held:
            return

        releases = [Release(button) for button in self._held]
        self._held = []
        try:
            self.device.emit(releases)
        except InjectionFailed as exc:
            logger.error("Failed releasing held buttons: %s", exc)
            self.error = exc

    def _run(self) -> None:
        activation = self.activation
        profile = activation.profile
        logger.info(
            "Clicking started: %r (%s, %s, %d cps)",
            profile.name,
            profile.pattern.value,
            profile.button.value,
            profile.cps,
        )

        next_deadline = time.perf_counter()
        try:
            while not self._stop_event.is_set():
                step = next_step(profile.pattern, profile.button, profile.cps, activation.tick, self.rng)
                self.device.emit(step.actions)
                self._track(step.actions)
                activation.tick += 1

                next_deadline += step.delay_ms / 1000.0
                now = time.perf_counter()
                if next_deadline < now:
                    next_deadline = now

                if self._stop_event.wait(next_deadline - now):
                    break

            self._release_held()
        except InjectionFailed as exc:
            self.error = exc
            self.stop_reason = "injection_failed"
            logger.error("Input injection failed for %r: %s", profile.name, exc)
        finally:
            logger.info(
                "Clicking stopped: %r after %d ticks (%s)",
                profile.name,
                activation.tick,
                self.stop_reason,
            )
            if self.on_finished is not None:
                self.on_finished(self, self.error)
