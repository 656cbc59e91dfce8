import random
from dataclasses import dataclass

from clickengine.config import (
    DRAG_DIRECTION,
    DRAG_STEP_PX,
    DRAG_STEPS,
    IDLE_DELAY_MS,
    JITTER_FRACTION,
)
from clickengine.models import ClickPattern, InputAction, Move, MouseButton, Press, Release


@dataclass(frozen=True, slots=True)
class PatternStep:
    actions: tuple[InputAction, ...]
    delay_ms: float


def base_interval_ms(cps: int) -> float:
    return 1000.0 / cps


def alternate_button(button: MouseButton) -> MouseButton:
    if button == MouseButton.LEFT:
        return MouseButton.RIGHT
    return MouseButton.LEFT


def jitter_delay_ms(base_ms: float, rng: random.Random | None = None) -> float:
    rng_obj = rng or random
    offset = rng_obj.uniform(-JITTER_FRACTION, JITTER_FRACTION) * base_ms
    return max(1.0, base_ms + offset)


def _press_or_release(button: MouseButton, tick: int) -> tuple[InputAction, ...]:
    if tick % 2 == 0:
        return (Press(button),)
    return (Release(button),)


def _drag_step(button: MouseButton, base_ms: float, tick: int) -> PatternStep:
    cycle_length = DRAG_STEPS + 2
    cycle, phase = divmod(tick, cycle_length)
    step_delay = base_ms / (DRAG_STEPS + 1)

    if phase == 0:
        return PatternStep((Press(button),), step_delay)

    if phase == cycle_length - 1:
        return PatternStep((Release(button),), base_ms)

    sign = 1 if cycle % 2 == 0 else -1
    dx = sign * DRAG_DIRECTION[0] * DRAG_STEP_PX
    dy = sign * DRAG_DIRECTION[1] * DRAG_STEP_PX
    return PatternStep((Move(dx, dy),), step_delay)


def next_step(
    pattern: ClickPattern,
    button: MouseButton,
    cps: int,
    tick: int,
    rng: random.Random | None = None,
) -> PatternStep:
    if cps <= 0:
        return PatternStep((), IDLE_DELAY_MS)

    base_ms = base_interval_ms(cps)

    if pattern == ClickPattern.NORMAL:
        return PatternStep(_press_or_release(button, tick), base_ms)

    if pattern == ClickPattern.JITTER:
        return PatternStep(_press_or_release(button, tick), jitter_delay_ms(base_ms, rng))

    if pattern == ClickPattern.BUTTERFLY:
        target = button if tick % 2 == 0 else alternate_button(button)
        return PatternStep((Press(target), Release(target)), base_ms / 2)

    if pattern == ClickPattern.DRAG:
        return _drag_step(button, base_ms, tick)

    raise ValueError(f"Unsupported click pattern: {pattern!r}")
