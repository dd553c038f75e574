from __future__ import annotations

import logging
import sys
import threading
from typing import Callable

from .inputs import MODIFIER_ORDER, InputIdentifier, normalize_input


InputHandler = Callable[[InputIdentifier], None]


def _symbol_to_digit(ch: str | None) -> str | None:
    # macOS Option+digit produces these characters instead of the digit.
    return {
        "¡": "1",
        "™": "2",
        "£": "3",
        "¢": "4",
        "∞": "5",
        "§": "6",
        "¶": "7",
        "•": "8",
        "ª": "9",
        "º": "0",
    }.get(ch or "")


class KeyboardPoller:
    """Frame-latched keyboard state fed by a pynput listener thread.

    Presses seen between two ``begin_frame`` calls are reported by
    ``was_pressed`` during the following frame.
    """

    def __init__(self, enabled: bool = True, on_input: InputHandler | None = None) -> None:
        self.enabled = bool(enabled)
        self.on_input = on_input
        self.available = False
        self.error: str | None = None
        self.log = logging.getLogger("rebinder.hotkeys")
        self._listener = None
        self._lock = threading.Lock()
        self._pressed_mods: set[str] = set()
        self._pending: set[str] = set()
        self._frame: frozenset[str] = frozenset()

    def start(self) -> None:
        if not self.enabled:
            self.available = False
            self.error = "keyboard polling disabled"
            self.log.info("keyboard_disabled")
            return
        try:
            from pynput import keyboard  # type: ignore
        except Exception as exc:  # pragma: no cover
            self.error = f"pynput unavailable: {exc}"
            self.available = False
            return

        self.log.info("keyboard_backend_start platform=%s", sys.platform)
        try:
            self._listener = keyboard.Listener(
                on_press=self._make_on_press(keyboard),
                on_release=self._make_on_release(keyboard),
            )
            self._listener.start()
            self.available = True
        except Exception as exc:  # pragma: no cover
            self.error = f"keyboard listener unavailable: {exc}"
            self.log.exception("keyboard_backend_failed")
            self.available = False

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
        self.available = False

    def begin_frame(self) -> None:
        with self._lock:
            self._frame = frozenset(self._pending)
            self._pending.clear()

    def was_pressed(self, value: object) -> bool:
        norm = normalize_input(value)
        return norm is not None and norm in self._frame

    def feed(self, token: str) -> None:
        norm = normalize_input(token)
        if norm is None:
            return
        with self._lock:
            mods = sorted(self._pressed_mods, key=MODIFIER_ORDER.index)
            self._pending.add(norm)
            if mods and norm not in MODIFIER_ORDER:
                combo = normalize_input("+".join([*mods, norm]))
                if combo is not None:
                    self._pending.add(combo)
                    norm = combo
        if self.on_input is not None:
            self.on_input(norm)

    def _modifier_name(self, key: object, keyboard_module: object) -> str | None:
        Key = getattr(keyboard_module, "Key")
        if key in {Key.cmd, Key.cmd_l, Key.cmd_r}:
            return "cmd"
        if key in {Key.alt, Key.alt_l, Key.alt_r, getattr(Key, "alt_gr", None)}:
            return "alt"
        if key in {Key.ctrl, Key.ctrl_l, Key.ctrl_r}:
            return "ctrl"
        if key in {Key.shift, Key.shift_l, Key.shift_r}:
            return "shift"
        return None

    def _key_token(self, key: object, keyboard_module: object) -> str | None:
        KeyCode = getattr(keyboard_module, "KeyCode")
        if isinstance(key, KeyCode):
            ch = getattr(key, "char", None)
            digit = _symbol_to_digit(ch)
            if digit is not None:
                return digit
            if ch:
                return str(ch).lower()
            vk = getattr(key, "vk", None)
            return f"vk{vk}" if vk is not None else None

        key_name = getattr(key, "name", None)
        if key_name:
            return str(key_name).lower()
        return None

    def _make_on_press(self, keyboard_module: object):
        def _on_press(key: object) -> None:
            mod = self._modifier_name(key, keyboard_module)
            if mod:
                with self._lock:
                    already = mod in self._pressed_mods
                    self._pressed_mods.add(mod)
                if not already:
                    self.feed(mod)
                return

            token = self._key_token(key, keyboard_module)
            if token:
                self.log.debug("raw_press key=%s mods=%s", token, sorted(self._pressed_mods))
                self.feed(token)
                return
            self.log.debug("raw_press_unmapped key=%r", key)

        return _on_press

    def _make_on_release(self, keyboard_module: object):
        def _on_release(key: object) -> None:
            mod = self._modifier_name(key, keyboard_module)
            if mod:
                with self._lock:
                    self._pressed_mods.discard(mod)
                self.log.debug("raw_release key=%s mods=%s", mod, sorted(self._pressed_mods))

        return _on_release
