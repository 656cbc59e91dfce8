class ClickEngineError(Exception):
    """Base class for failures raised by the click engine."""


class UnrecognizedKey(ClickEngineError, ValueError):
    def __init__(self, raw_key: str, reason: str = "unknown key") -> None:
        super().__init__(f"{reason}: {raw_key!r}")
        self.raw_key = raw_key


class DeviceUnavailable(ClickEngineError):
    """The virtual input device could not be created.

    Fatal to clicking only; the rest of the application keeps running.
    """

    def __init__(self, message: str, hint: str = "") -> None:
        super().__init__(message)
        self.hint = hint

    def describe(self) -> str:
        if not self.hint:
            return str(self)
        return f"{self} ({self.hint})"


class InjectionFailed(ClickEngineError):
    """A press/release/move/sync call failed after the device was open."""
