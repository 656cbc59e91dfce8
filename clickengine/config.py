import os
import sys


APP_NAME = "hyprclickr"
PROFILE_FILE_NAME = "profiles.json"
RUN_LOG_FILE_NAME = "run_logs.jsonl"

MIN_CPS = 0
MAX_CPS = 50
DEFAULT_CPS = 10
IDLE_DELAY_MS = 1000.0

DEFAULT_HOTKEY_TEXT = "<f8>"

JITTER_FRACTION = 0.30

DRAG_STEPS = 8
DRAG_STEP_PX = 5
DRAG_DIRECTION = (1, 0)

SCHEDULER_STOP_TIMEOUT = 2.0
DISPATCH_POLL_INTERVAL = 0.1

UINPUT_DEVICE_NAME = "hyprclickr"


def default_backend() -> str:
    if sys.platform.startswith("linux"):
        return "uinput"
    return "pynput"


def _xdg_dir(env_name: str, fallback: str) -> str:
    base = os.environ.get(env_name, "").strip()
    if not base or not os.path.isabs(base):
        base = os.path.join(os.path.expanduser("~"), fallback)
    return os.path.join(base, APP_NAME)


def config_dir() -> str:
    return _xdg_dir("XDG_CONFIG_HOME", ".config")


def state_dir() -> str:
    return _xdg_dir("XDG_STATE_HOME", os.path.join(".local", "state"))


def default_profile_path() -> str:
    return os.path.join(config_dir(), PROFILE_FILE_NAME)


def default_run_log_path() -> str:
    return os.path.join(state_dir(), RUN_LOG_FILE_NAME)
