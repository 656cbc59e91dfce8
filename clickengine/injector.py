import abc
import logging
import threading
from collections.abc import Iterable

from clickengine.config import UINPUT_DEVICE_NAME, default_backend
from clickengine.errors import DeviceUnavailable, InjectionFailed
from clickengine.models import InputAction, Move, MouseButton, Press, Release


logger = logging.getLogger(__name__)


UINPUT_PERMISSION_HINT = (
    "creating a virtual pointer needs write access to /dev/uinput; "
    "add your user to the 'input' group or install a udev rule, then log in again"
)

BACKENDS = ("uinput", "pynput")


class InputInjector(abc.ABC):
    """Synthetic pointer output behind one device handle."""

    name = "injector"

    @abc.abstractmethod
    def open(self) -> None:
        ...

    @abc.abstractmethod
    def press(self, button: MouseButton) -> None:
        ...

    @abc.abstractmethod
    def release(self, button: MouseButton) -> None:
        ...

    @abc.abstractmethod
    def move(self, dx: int, dy: int) -> None:
        ...

    @abc.abstractmethod
    def sync(self) -> None:
        ...

    @abc.abstractmethod
    def close(self) -> None:
        ...

    def perform(self, action: InputAction) -> None:
        if isinstance(action, Press):
            self.press(action.button)
        elif isinstance(action, Release):
            self.release(action.button)
        elif isinstance(action, Move):
            self.move(action.dx, action.dy)
        else:
            raise TypeError(f"Unsupported input action: {action!r}")


class UInputInjector(InputInjector):
    name = "uinput"

    def __init__(self, device_name: str = UINPUT_DEVICE_NAME) -> None:
        self.device_name = device_name
        self._device = None
        self._ecodes = None

    def open(self) -> None:
        if self._device is not None:
            return

        try:
            from evdev import UInput, UInputError, ecodes
        except ImportError as exc:
            raise DeviceUnavailable(
                f"python-evdev is not available: {exc}",
                "install the 'evdev' package or run with --backend pynput",
            ) from exc

        capabilities = {
            ecodes.EV_KEY: [ecodes.BTN_LEFT, ecodes.BTN_RIGHT, ecodes.BTN_MIDDLE],
            ecodes.EV_REL: [ecodes.REL_X, ecodes.REL_Y],
        }
        try:
            self._device = UInput(capabilities, name=self.device_name)
        except PermissionError as exc:
            raise DeviceUnavailable(
                f"Permission denied creating virtual device: {exc}", UINPUT_PERMISSION_HINT
            ) from exc
        except (OSError, UInputError) as exc:
            raise DeviceUnavailable(f"Cannot create virtual device: {exc}", UINPUT_PERMISSION_HINT) from exc

        self._ecodes = ecodes
        logger.info("Opened uinput device %r", self.device_name)

    def _require_open(self):
        if self._device is None or self._ecodes is None:
            raise InjectionFailed("uinput device is not open")
        return self._ecodes

    def _button_code(self, button: MouseButton) -> int:
        ecodes = self._require_open()
        mapping = {
            MouseButton.LEFT: ecodes.BTN_LEFT,
            MouseButton.RIGHT: ecodes.BTN_RIGHT,
            MouseButton.MIDDLE: ecodes.BTN_MIDDLE,
        }
        return mapping[button]

    def _write(self, event_type: int, code: int, value: int) -> None:
        try:
            self._device.write(event_type, code, value)
        except OSError as exc:
            raise InjectionFailed(f"uinput write failed: {exc}") from exc

    def press(self, button: MouseButton) -> None:
        code = self._button_code(button)
        self._write(self._ecodes.EV_KEY, code, 1)

    def release(self, button: MouseButton) -> None:
        code = self._button_code(button)
        self._write(self._ecodes.EV_KEY, code, 0)

    def move(self, dx: int, dy: int) -> None:
        ecodes = self._require_open()
        if dx:
            self._write(ecodes.EV_REL, ecodes.REL_X, dx)
        if dy:
            self._write(ecodes.EV_REL, ecodes.REL_Y, dy)

    def sync(self) -> None:
        self._require_open()
        try:
            self._device.syn()
        except OSError as exc:
            raise InjectionFailed(f"uinput sync failed: {exc}") from exc

    def close(self) -> None:
        if self._device is None:
            return
        try:
            self._device.close()
        except OSError as exc:
            logger.warning("Failed closing uinput device: %s", exc)
        self._device = None


class PynputInjector(InputInjector):
    name = "pynput"

    def __init__(self) -> None:
        self._controller = None
        self._buttons: dict[MouseButton, object] = {}

    def open(self) -> None:
        if self._controller is not None:
            return

        try:
            from pynput import mouse

            self._controller = mouse.Controller()
        except Exception as exc:
            raise DeviceUnavailable(
                f"Cannot open pynput mouse controller: {exc}",
                "pynput needs a running display server session",
            ) from exc

        self._buttons = {
            MouseButton.LEFT: mouse.Button.left,
            MouseButton.RIGHT: mouse.Button.right,
            MouseButton.MIDDLE: mouse.Button.middle,
        }
        logger.info("Opened pynput mouse controller")

    def _require_controller(self):
        if self._controller is None:
            raise InjectionFailed("pynput mouse controller is not open")
        return self._controller

    def press(self, button: MouseButton) -> None:
        controller = self._require_controller()
        try:
            controller.press(self._buttons[button])
        except Exception as exc:
            raise InjectionFailed(f"Mouse press failed: {exc}") from exc

    def release(self, button: MouseButton) -> None:
        controller = self._require_controller()
        try:
            controller.release(self._buttons[button])
        except Exception as exc:
            raise InjectionFailed(f"Mouse release failed: {exc}") from exc

    def move(self, dx: int, dy: int) -> None:
        controller = self._require_controller()
        try:
            controller.move(dx, dy)
        except Exception as exc:
            raise InjectionFailed(f"Mouse move failed: {exc}") from exc

    def sync(self) -> None:
        self._require_controller()

    def close(self) -> None:
        self._controller = None
        self._buttons = {}


def create_injector(backend: str | None = None) -> InputInjector:
    name = (backend or default_backend()).strip().lower()
    if name == "uinput":
        return UInputInjector()
    if name == "pynput":
        return PynputInjector()
    raise ValueError(f"Unknown input backend {backend!r}; expected one of {', '.join(BACKENDS)}")


class SharedDevice:
    """The engine's single open injector, written by one tick at a time."""

    def __init__(self, injector: InputInjector) -> None:
        self.injector = injector
        self._lock = threading.Lock()
        self._opened = False
        self.error: DeviceUnavailable | None = None

    @property
    def available(self) -> bool:
        return self._opened

    def open(self) -> None:
        with self._lock:
            if self._opened:
                return
            try:
                self.injector.open()
            except DeviceUnavailable as exc:
                self.error = exc
                raise
            self._opened = True
            self.error = None

    def emit(self, actions: Iterable[InputAction]) -> None:
        with self._lock:
            if not self._opened:
                raise InjectionFailed("input device is not open")
            for action in actions:
                self.injector.perform(action)
            self.injector.sync()

    def close(self) -> None:
        with self._lock:
            if not self._opened:
                return
            self.injector.close()
            self._opened = False
