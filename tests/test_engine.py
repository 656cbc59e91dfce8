import pytest
from conftest import RecordingInjector, wait_for

from clickengine.engine import ClickEngine, KeyEvent
from clickengine.models import ActivationMode, ActivationState, Hotkey, KeyPhase, Modifier, Profile
from clickengine.store import ProfileStore


PRESSED = KeyPhase.PRESSED
RELEASED = KeyPhase.RELEASED


@pytest.fixture
def store(tmp_path):
    store = ProfileStore(str(tmp_path / "profiles.json"))
    store.save(
        [
            Profile(name="disabled", hotkey=Hotkey("f8", Modifier.CTRL), cps=50, active=False),
            Profile(name="ctrl-f8", hotkey=Hotkey("f8", Modifier.CTRL), cps=50, active=True),
            Profile(name="dup", hotkey=Hotkey("f8", Modifier.CTRL), cps=50, active=True),
            Profile(
                name="hold",
                activation=ActivationMode.HOLD,
                hotkey=Hotkey("g", Modifier.ALT),
                cps=50,
                active=True,
            ),
        ]
    )
    return store


@pytest.fixture
def engine(store, injector):
    engine = ClickEngine(store, injector)
    engine.device.open()
    yield engine
    engine.controller.deactivate()


def test_first_enabled_match_wins(engine):
    assert engine.handle_event(KeyEvent("f8", Modifier.CTRL, PRESSED)) == ActivationState.ACTIVE

    assert engine.controller.active_index == 1
    assert engine.state_of(0) == ActivationState.IDLE
    assert engine.state_of(2) == ActivationState.IDLE


def test_superset_modifiers_do_not_trigger(engine):
    assert engine.handle_event(KeyEvent("f8", Modifier.CTRL | Modifier.SHIFT, PRESSED)) is None
    assert engine.handle_event(KeyEvent("f8", Modifier.NONE, PRESSED)) is None
    assert engine.controller.active_index is None


def test_unknown_keys_are_ignored(engine):
    assert engine.handle_event(KeyEvent("media_volume_up", Modifier.NONE, PRESSED)) is None
    assert engine.controller.active_index is None


def test_hold_profile_through_events(engine):
    engine.handle_event(KeyEvent("g", Modifier.ALT, PRESSED))
    assert engine.state_of(3) == ActivationState.ACTIVE

    engine.handle_event(KeyEvent("alt_l", Modifier.NONE, RELEASED))
    assert engine.state_of(3) == ActivationState.ACTIVE

    engine.handle_event(KeyEvent("g", Modifier.NONE, RELEASED))
    assert engine.state_of(3) == ActivationState.IDLE


def test_dispatch_thread_round_trip(store, injector):
    messages = []
    engine = ClickEngine(store, injector, status_callback=messages.append)
    assert engine.start()

    engine.on_key_event("F8", Modifier.CTRL, PRESSED)
    engine.wait_idle()
    assert engine.state_of(1) == ActivationState.ACTIVE
    assert wait_for(lambda: injector.pressed_event.is_set())

    engine.on_key_event("f8", Modifier.CTRL, RELEASED)
    engine.on_key_event("f8", Modifier.CTRL, PRESSED)
    engine.wait_idle()
    assert engine.state_of(1) == ActivationState.IDLE

    engine.stop()
    assert injector.closed
    assert "Active: ctrl-f8" in messages


def test_request_deactivate(store, injector):
    engine = ClickEngine(store, injector)
    engine.start()
    engine.on_key_event("f8", Modifier.CTRL, PRESSED)
    engine.wait_idle()
    assert engine.controller.active_index == 1

    engine.request_deactivate()
    engine.wait_idle()
    assert engine.controller.active_index is None
    engine.stop()


def test_device_unavailable_keeps_listening(store):
    injector = RecordingInjector(fail_open=True)
    messages = []
    engine = ClickEngine(store, injector, status_callback=messages.append)

    assert engine.start() is False
    assert engine.device_error is not None
    assert "grant access" in engine.device_error.describe()

    engine.on_key_event("f8", Modifier.CTRL, PRESSED)
    engine.on_key_event("bogus_key", Modifier.NONE, PRESSED)
    engine.wait_idle()

    assert engine.state_of(1) == ActivationState.IDLE
    assert engine._dispatch_thread.is_alive()
    assert injector.snapshot() == []
    assert all(m.startswith("Clicking unavailable") for m in messages)
    engine.stop()
