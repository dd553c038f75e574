from __future__ import annotations

import sys


InputIdentifier = str

UNBOUND_TEXT = "None"
MODIFIER_ORDER = ("cmd", "ctrl", "alt", "shift")

_MODIFIER_ALIASES = {
    "command": "cmd",
    "meta": "cmd",
    "super": "cmd",
    "win": "cmd",
    "option": "alt",
    "control": "ctrl",
}

_KEY_ALIASES = {
    "return": "enter",
    "escape": "esc",
    "del": "delete",
    "spacebar": "space",
    "pgup": "page_up",
    "pgdown": "page_down",
}


def normalize_input(value: object) -> InputIdentifier | None:
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text or text == "none":
        return None
    parts = [p.strip() for p in text.split("+") if p.strip()]
    mods: list[str] = []
    key = ""
    for part in parts:
        p = _MODIFIER_ALIASES.get(part, part)
        if p in MODIFIER_ORDER:
            if p not in mods:
                mods.append(p)
        else:
            key = _KEY_ALIASES.get(p, p)
    mods.sort(key=MODIFIER_ORDER.index)
    if not key:
        # a lone modifier is still a physical key
        return "+".join(mods) or None
    return "+".join([*mods, key])


def encode_input(value: InputIdentifier | None) -> str:
    norm = normalize_input(value)
    return UNBOUND_TEXT if norm is None else norm


def decode_input(text: object) -> InputIdentifier | None:
    return normalize_input(text)


def human_input_label(value: InputIdentifier | None) -> str:
    norm = normalize_input(value)
    if norm is None:
        return "-"
    out: list[str] = []
    for p in norm.split("+"):
        if sys.platform == "darwin":
            out.append({"cmd": "⌘", "alt": "⌥", "ctrl": "⌃", "shift": "⇧"}.get(p, p.upper()))
        else:
            out.append({"cmd": "Win", "alt": "Alt", "ctrl": "Ctrl", "shift": "Shift"}.get(p, p.upper()))
    return "".join(out) if sys.platform == "darwin" else "+".join(out)
