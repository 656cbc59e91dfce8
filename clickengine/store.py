import json
import logging
import os
import threading
from collections.abc import Iterable
from enum import Enum

from clickengine.config import DEFAULT_CPS, MAX_CPS, MIN_CPS, default_profile_path
from clickengine.hotkeys import format_hotkey, parse_hotkey_or_default
from clickengine.models import ActivationMode, ClickPattern, MouseButton, Profile


logger = logging.getLogger(__name__)


def clamp_cps(raw: object) -> int:
    if isinstance(raw, bool):
        return DEFAULT_CPS
    try:
        value = int(float(raw))
    except (TypeError, ValueError):
        return DEFAULT_CPS
    return max(MIN_CPS, min(MAX_CPS, value))


def _enum_from_token(enum_cls: type[Enum], raw: object, default: Enum) -> Enum:
    if isinstance(raw, str):
        token = raw.strip().lower()
        for member in enum_cls:
            if member.value == token:
                return member
    return default


def profile_from_payload(payload: dict[str, object], position: int = 0) -> Profile:
    name = str(payload.get("name") or "").strip() or f"Profile {position + 1}"
    hotkey_text = payload.get("hotkey")
    if not isinstance(hotkey_text, str):
        hotkey_text = ""

    return Profile(
        name=name,
        button=_enum_from_token(MouseButton, payload.get("mouse_button"), MouseButton.LEFT),
        pattern=_enum_from_token(ClickPattern, payload.get("click_pattern"), ClickPattern.NORMAL),
        activation=_enum_from_token(ActivationMode, payload.get("activation"), ActivationMode.TOGGLE),
        hotkey=parse_hotkey_or_default(hotkey_text),
        cps=clamp_cps(payload.get("cps", DEFAULT_CPS)),
        active=bool(payload.get("active", False)),
    )


def profile_to_payload(profile: Profile) -> dict[str, object]:
    return {
        "name": profile.name,
        "mouse_button": profile.button.value,
        "click_pattern": profile.pattern.value,
        "activation": profile.activation.value,
        "hotkey": format_hotkey(profile.hotkey),
        "cps": profile.cps,
        "active": profile.active,
    }


class ProfileStore:
    def __init__(self, path: str | None = None) -> None:
        self.path = path or default_profile_path()
        self._lock = threading.Lock()
        self._profiles: tuple[Profile, ...] = ()
        self._loaded_mtime: float | None = None

    def _file_mtime(self) -> float | None:
        try:
            return os.path.getmtime(self.path)
        except OSError:
            return None

    def _read_from_disk(self) -> tuple[Profile, ...]:
        if not os.path.exists(self.path):
            return ()

        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning("Failed reading profiles from %s: %s", self.path, exc)
            return ()

        if not isinstance(data, list):
            logger.warning("Ignoring profile file %s: expected a list", self.path)
            return ()

        cleaned: list[Profile] = []
        for value in data:
            if isinstance(value, dict):
                cleaned.append(profile_from_payload(value, len(cleaned)))
        return tuple(cleaned)

    def load(self) -> list[Profile]:
        with self._lock:
            mtime = self._file_mtime()
            if mtime is None or mtime != self._loaded_mtime:
                self._profiles = self._read_from_disk()
                self._loaded_mtime = mtime
            return list(self._profiles)

    def save(self, profiles: Iterable[Profile]) -> bool:
        snapshot = tuple(profiles)
        payload = [profile_to_payload(profile) for profile in snapshot]
        with self._lock:
            try:
                directory = os.path.dirname(self.path)
                if directory:
                    os.makedirs(directory, exist_ok=True)
                with open(self.path, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, indent=2)
            except OSError as exc:
                logger.error("Failed saving profiles to %s: %s", self.path, exc)
                return False

            self._profiles = snapshot
            self._loaded_mtime = self._file_mtime()
        return True
