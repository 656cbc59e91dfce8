from clickengine.models import ClickPattern, Profile, RuntimeActivation
from clickengine.run_log import RunLog, build_run_entry


def test_build_run_entry_fields():
    profile = Profile(name="Joe", pattern=ClickPattern.JITTER, cps=12)
    activation = RuntimeActivation(profile_index=0, profile=profile)
    activation.tick = 9
    activation.presses = 5

    entry = build_run_entry(activation, "deactivated")

    assert entry["profile"] == "Joe"
    assert entry["pattern"] == "jitter"
    assert entry["cps"] == 12
    assert entry["ticks"] == 9
    assert entry["presses"] == 5
    assert entry["stop_reason"] == "deactivated"
    assert entry["error"] is None
    assert entry["elapsed_seconds"] >= 0


def test_append_and_read(tmp_path):
    log = RunLog(str(tmp_path / "state" / "run_logs.jsonl"))

    assert log.append({"profile": "a"})
    assert log.append({"profile": "b"})

    assert [entry["profile"] for entry in log.read()] == ["a", "b"]


def test_append_failure_returns_false(tmp_path):
    log = RunLog(str(tmp_path))

    assert log.append({"profile": "a"}) is False


def test_read_of_unreadable_log_is_empty(tmp_path):
    log = RunLog(str(tmp_path))

    assert log.read() == []
