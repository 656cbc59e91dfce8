import threading

import pytest
from conftest import RecordingInjector, wait_for

from clickengine.activation import ActivationController
from clickengine.errors import DeviceUnavailable
from clickengine.injector import SharedDevice
from clickengine.models import (
    ActivationMode,
    ActivationState,
    Hotkey,
    Modifier,
    MouseButton,
    Profile,
)
from clickengine.run_log import RunLog


TOGGLE = Profile(name="toggle", hotkey=Hotkey("f8"), cps=50, active=True)
HOLD = Profile(
    name="hold",
    activation=ActivationMode.HOLD,
    hotkey=Hotkey("f9", Modifier.CTRL),
    cps=50,
    active=True,
)


def make_controller(injector, **kwargs):
    device = SharedDevice(injector)
    device.open()
    return ActivationController(device, **kwargs)


def test_all_profiles_start_idle(injector):
    controller = make_controller(injector)

    assert controller.state_of(0) == ActivationState.IDLE
    assert controller.active_index is None


def test_toggle_twice_returns_to_idle(injector):
    controller = make_controller(injector)

    assert controller.press(0, TOGGLE) == ActivationState.ACTIVE
    assert controller.state_of(0) == ActivationState.ACTIVE
    assert controller.press(0, TOGGLE) == ActivationState.IDLE
    assert controller.state_of(0) == ActivationState.IDLE


def test_toggle_ignores_release(injector):
    controller = make_controller(injector)
    controller.press(0, TOGGLE)

    assert controller.release(Hotkey("f8")) == ActivationState.ACTIVE
    assert controller.state_of(0) == ActivationState.ACTIVE
    controller.deactivate()


def test_hold_press_is_idempotent_and_release_stops(injector):
    controller = make_controller(injector)

    assert controller.press(1, HOLD) == ActivationState.ACTIVE
    first = controller.current
    assert controller.press(1, HOLD) == ActivationState.ACTIVE
    assert controller.current is first

    assert controller.release(Hotkey("f9", Modifier.CTRL)) == ActivationState.IDLE
    assert controller.state_of(1) == ActivationState.IDLE
    assert controller.release(Hotkey("f9", Modifier.CTRL)) == ActivationState.IDLE


def test_hold_ends_when_modifier_was_let_go_first(injector):
    controller = make_controller(injector)
    controller.press(1, HOLD)

    assert controller.release(Hotkey("f9")) == ActivationState.IDLE


def test_hold_ignores_release_of_other_keys(injector):
    controller = make_controller(injector)
    controller.press(1, HOLD)

    assert controller.release(Hotkey("a")) == ActivationState.ACTIVE
    controller.deactivate()


def test_switching_profiles_never_overlaps_streams(injector, tmp_path):
    run_log = RunLog(str(tmp_path / "runs.jsonl"))
    controller = make_controller(injector, run_log=run_log)
    left = Profile(name="A", button=MouseButton.LEFT, cps=50, active=True)
    right = Profile(name="B", button=MouseButton.RIGHT, cps=50, active=True)

    controller.press(0, left)
    assert wait_for(lambda: controller.current.presses >= 2)
    controller.press(1, right)
    assert controller.state_of(0) == ActivationState.IDLE
    assert controller.state_of(1) == ActivationState.ACTIVE
    assert wait_for(lambda: controller.current.presses >= 2)
    controller.deactivate()

    actions = injector.actions()
    first_right = next(i for i, a in enumerate(actions) if a[1] == MouseButton.RIGHT)
    left_part = actions[:first_right]
    assert all(a[1] == MouseButton.LEFT for a in left_part)
    assert all(a[1] == MouseButton.RIGHT for a in actions[first_right:])
    assert left_part[-1] == ("release", MouseButton.LEFT)

    reasons = [entry["stop_reason"] for entry in run_log.read()]
    assert reasons == ["superseded", "deactivated"]


def test_unavailable_device_keeps_profiles_idle():
    injector = RecordingInjector(fail_open=True)
    device = SharedDevice(injector)
    messages = []
    with pytest.raises(DeviceUnavailable):
        device.open()
    controller = ActivationController(device, status_callback=messages.append)

    assert controller.press(0, TOGGLE) == ActivationState.IDLE
    assert controller.state_of(0) == ActivationState.IDLE
    assert injector.snapshot() == []
    assert any(m.startswith("Clicking unavailable") for m in messages)


def test_injection_failure_returns_profile_to_idle(tmp_path):
    injector = RecordingInjector(fail_after=4)
    run_log = RunLog(str(tmp_path / "runs.jsonl"))
    messages = []
    states = []
    controller = make_controller(
        injector,
        run_log=run_log,
        status_callback=messages.append,
        state_callback=states.append,
    )

    assert controller.press(0, TOGGLE) == ActivationState.ACTIVE
    assert wait_for(lambda: controller.active_index is None)

    assert states == [0, None]
    assert sum(1 for m in messages if m.startswith("Clicking stopped")) == 1
    entries = run_log.read()
    assert len(entries) == 1
    assert entries[0]["stop_reason"] == "injection_failed"
    assert entries[0]["error"] == "device went away"

    assert controller.press(0, TOGGLE) == ActivationState.ACTIVE
    controller.deactivate()


class StuckInjector(RecordingInjector):
    def __init__(self) -> None:
        super().__init__()
        self.gate = threading.Event()

    def press(self, button: MouseButton) -> None:
        super().press(button)
        self.gate.wait(5.0)


def test_slow_stop_keeps_profile_active_until_the_run_ends():
    injector = StuckInjector()
    messages = []
    states = []
    controller = make_controller(
        injector,
        status_callback=messages.append,
        state_callback=states.append,
        stop_timeout=0.05,
    )

    assert controller.press(0, TOGGLE) == ActivationState.ACTIVE
    assert injector.pressed_event.wait(2.0)

    assert controller.press(0, TOGGLE) == ActivationState.ACTIVE
    assert controller.state_of(0) == ActivationState.ACTIVE
    assert messages[-1] == "'toggle' is still stopping"

    injector.gate.set()
    assert wait_for(lambda: controller.active_index is None)
    assert states == [0, None]
    assert injector.actions()[-1] == ("release", MouseButton.LEFT)

    assert controller.press(0, TOGGLE) == ActivationState.ACTIVE
    assert controller.deactivate()
