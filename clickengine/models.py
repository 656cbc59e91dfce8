import enum
import time
from dataclasses import dataclass, field


class MouseButton(str, enum.Enum):
    LEFT = "left"
    RIGHT = "right"
    MIDDLE = "middle"


class ClickPattern(str, enum.Enum):
    NORMAL = "normal"
    JITTER = "jitter"
    BUTTERFLY = "butterfly"
    DRAG = "drag"


class ActivationMode(str, enum.Enum):
    TOGGLE = "toggle"
    HOLD = "hold"


class ActivationState(str, enum.Enum):
    IDLE = "idle"
    ACTIVE = "active"


class KeyPhase(str, enum.Enum):
    PRESSED = "pressed"
    RELEASED = "released"


class Modifier(enum.IntFlag):
    NONE = 0
    CTRL = 1
    SHIFT = 2
    ALT = 4


MODIFIER_ORDER: tuple[Modifier, ...] = (Modifier.CTRL, Modifier.SHIFT, Modifier.ALT)


@dataclass(frozen=True, slots=True)
class Hotkey:
    key: str
    modifiers: Modifier = Modifier.NONE

    def modifier_names(self) -> list[str]:
        return [flag.name.lower() for flag in MODIFIER_ORDER if self.modifiers & flag]


@dataclass(frozen=True, slots=True)
class Profile:
    name: str
    button: MouseButton = MouseButton.LEFT
    pattern: ClickPattern = ClickPattern.NORMAL
    activation: ActivationMode = ActivationMode.TOGGLE
    hotkey: Hotkey = Hotkey("f8")
    cps: int = 10
    active: bool = False


@dataclass(frozen=True, slots=True)
class Press:
    button: MouseButton


@dataclass(frozen=True, slots=True)
class Release:
    button: MouseButton


@dataclass(frozen=True, slots=True)
class Move:
    dx: int
    dy: int


InputAction = Press | Release | Move


@dataclass(slots=True)
class RuntimeActivation:
    profile_index: int
    profile: Profile
    tick: int = 0
    presses: int = 0
    started_at: float = field(default_factory=time.time)
    started_monotonic: float = field(default_factory=time.monotonic)

    def elapsed(self) -> float:
        return time.monotonic() - self.started_monotonic
