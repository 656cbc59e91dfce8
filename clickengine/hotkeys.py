import logging

from clickengine.config import DEFAULT_HOTKEY_TEXT
from clickengine.errors import UnrecognizedKey
from clickengine.models import MODIFIER_ORDER, Hotkey, Modifier, Profile


logger = logging.getLogger(__name__)


MODIFIER_ALIASES: dict[str, Modifier] = {
    "ctrl": Modifier.CTRL,
    "ctrl_l": Modifier.CTRL,
    "ctrl_r": Modifier.CTRL,
    "control": Modifier.CTRL,
    "shift": Modifier.SHIFT,
    "shift_l": Modifier.SHIFT,
    "shift_r": Modifier.SHIFT,
    "alt": Modifier.ALT,
    "alt_l": Modifier.ALT,
    "alt_r": Modifier.ALT,
    "alt_gr": Modifier.ALT,
}

NAMED_KEYS: dict[str, str] = {
    "space": "space",
    "enter": "enter",
    "return": "enter",
    "tab": "tab",
    "esc": "esc",
    "escape": "esc",
    "backspace": "backspace",
    "delete": "delete",
    "del": "delete",
    "insert": "insert",
    "home": "home",
    "end": "end",
    "page_up": "page_up",
    "pageup": "page_up",
    "pgup": "page_up",
    "page_down": "page_down",
    "pagedown": "page_down",
    "pgdn": "page_down",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "caps_lock": "caps_lock",
    "capslock": "caps_lock",
    "num_lock": "num_lock",
    "numlock": "num_lock",
    "print_screen": "print_screen",
    "printscreen": "print_screen",
    "scroll_lock": "scroll_lock",
    "scrolllock": "scroll_lock",
    "pause": "pause",
    "menu": "menu",
    "cmd": "cmd",
    "cmd_l": "cmd",
    "cmd_r": "cmd",
    "super": "cmd",
}

MAX_FUNCTION_KEY = 24


def _clean_token(raw_key: str) -> str:
    token = raw_key.strip()
    if token.startswith("<") and token.endswith(">"):
        token = token[1:-1].strip()
    if len(token) == 1:
        return token.lower()
    return token.lower().replace(" ", "").replace("-", "_")


def _modifier_for(token: str) -> Modifier | None:
    return MODIFIER_ALIASES.get(token)


def _key_symbol(token: str) -> str | None:
    if len(token) == 1:
        if token.isprintable() and not token.isspace():
            return token
        return None

    if token in NAMED_KEYS:
        return NAMED_KEYS[token]

    if token.startswith("f") and token[1:].isdigit():
        number = int(token[1:])
        if 1 <= number <= MAX_FUNCTION_KEY:
            return f"f{number}"

    return None


def normalize(raw_key_name: str, modifier_bitset: int | Modifier) -> Hotkey:
    token = _clean_token(raw_key_name)
    if not token:
        raise UnrecognizedKey(raw_key_name, "empty key name")

    modifier = _modifier_for(token)
    if modifier is not None:
        return Hotkey(key=modifier.name.lower(), modifiers=Modifier.NONE)

    symbol = _key_symbol(token)
    if symbol is None:
        raise UnrecognizedKey(raw_key_name)

    modifiers = Modifier(int(modifier_bitset) & (Modifier.CTRL | Modifier.SHIFT | Modifier.ALT))
    return Hotkey(key=symbol, modifiers=modifiers)


def matches(hotkey: Hotkey, profile: Profile) -> bool:
    expected = profile.hotkey
    return hotkey.key == expected.key and hotkey.modifiers == expected.modifiers


def parse_hotkey(text: str) -> Hotkey:
    tokens = [_clean_token(part) for part in text.split("+")]
    if not tokens or any(not token for token in tokens):
        raise UnrecognizedKey(text, "malformed hotkey")

    modifiers = Modifier.NONE
    keys: list[str] = []
    for token in tokens:
        modifier = _modifier_for(token)
        if modifier is not None:
            modifiers |= modifier
            continue

        symbol = _key_symbol(token)
        if symbol is None:
            raise UnrecognizedKey(text)
        keys.append(symbol)

    if len(keys) > 1:
        raise UnrecognizedKey(text, "hotkey needs exactly one non-modifier key")

    if not keys:
        if len(tokens) != 1:
            raise UnrecognizedKey(text, "hotkey needs exactly one non-modifier key")
        return normalize(tokens[0], Modifier.NONE)

    return Hotkey(key=keys[0], modifiers=modifiers)


def parse_hotkey_or_default(text: str) -> Hotkey:
    try:
        return parse_hotkey(text)
    except UnrecognizedKey as exc:
        logger.warning("Invalid hotkey %r (%s), using %s", text, exc, DEFAULT_HOTKEY_TEXT)
        return parse_hotkey(DEFAULT_HOTKEY_TEXT)


def _format_token(name: str) -> str:
    if len(name) == 1:
        return name
    return f"<{name}>"


def format_hotkey(hotkey: Hotkey) -> str:
    parts = [f"<{name}>" for name in hotkey.modifier_names()]
    parts.append(_format_token(hotkey.key))
    return "+".join(parts)


def describe_hotkey(hotkey: Hotkey) -> str:
    parts = [flag.name.capitalize() for flag in MODIFIER_ORDER if hotkey.modifiers & flag]
    key = hotkey.key
    if len(key) == 1 or (key.startswith("f") and key[1:].isdigit()):
        parts.append(key.upper())
    else:
        parts.append(key.replace("_", " ").title())
    return "+".join(parts)


class ModifierTracker:
    """Held modifiers and keys, with OS auto-repeat presses filtered out."""

    def __init__(self) -> None:
        self.modifiers = Modifier.NONE
        self._held_modifiers: dict[str, Modifier] = {}
        self._down: set[str] = set()

    def press(self, raw_name: str) -> Modifier | None:
        if raw_name in self._down:
            return None
        self._down.add(raw_name)

        current = self.modifiers
        modifier = _modifier_for(_clean_token(raw_name))
        if modifier is not None:
            self._held_modifiers[raw_name] = modifier
            self._recompute()
        return current

    def release(self, raw_name: str) -> Modifier:
        self._down.discard(raw_name)
        if raw_name in self._held_modifiers:
            del self._held_modifiers[raw_name]
            self._recompute()
        return self.modifiers

    def _recompute(self) -> None:
        combined = Modifier.NONE
        for modifier in self._held_modifiers.values():
            combined |= modifier
        self.modifiers = combined
