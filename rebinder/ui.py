from __future__ import annotations

import logging
from pathlib import Path
import sys
import tkinter as tk
from tkinter import ttk

from .actions import ActionId
from .config import RebinderConfig, save_config
from .conflicts import BindingChange, ConflictPolicy
from .controller import JoystickPoller
from .dispatch import ActionDispatcher, CompositePoller
from .hotkeys import KeyboardPoller
from .inputs import normalize_input
from .layout import Layout
from .session import ControlsSession


NAV_KEYSYMS = {"Up": "up", "Down": "down", "Left": "left", "Right": "right"}


def _keysym_to_mod(keysym: str) -> str | None:
    k = (keysym or "").lower()
    if k in {"meta_l", "meta_r", "command", "super_l", "super_r"}:
        return "cmd"
    if k in {"alt_l", "alt_r", "option_l", "option_r"}:
        return "alt"
    if k in {"control_l", "control_r"}:
        return "ctrl"
    if k in {"shift_l", "shift_r"}:
        return "shift"
    return None


def _keysym_to_token(keysym: str) -> str | None:
    k = (keysym or "").lower()
    if len(k) == 1:
        return k
    if k.startswith("f") and k[1:].isdigit():
        return k
    if k.startswith("kp_") and k[3:].isdigit():
        return k[3:]
    named = {
        "space": "space",
        "return": "enter",
        "escape": "esc",
        "tab": "tab",
        "delete": "delete",
        "backspace": "backspace",
        "up": "up",
        "down": "down",
        "left": "left",
        "right": "right",
        "home": "home",
        "end": "end",
        "prior": "page_up",
        "next": "page_down",
        "insert": "insert",
    }
    return named.get(k)


class ControlsApp:
    TABLE_SCALE = 3.0
    BASE_FONT_SIZE = 10
    TICK_MS = 16

    def __init__(self, session: ControlsSession, config: RebinderConfig, config_path: Path, player: int = 0) -> None:
        self.root = tk.Tk()
        self.root.title("Controls")
        self.root.resizable(False, False)
        self.log = logging.getLogger("rebinder")

        self.session = session
        self.config = config
        self.config_path = Path(config_path)
        self.player = session.registry.check_player(player)
        self.keyboard = KeyboardPoller()
        self.joystick = JoystickPoller()
        self.poller = CompositePoller(self.keyboard, self.joystick)
        self.dispatcher = ActionDispatcher(session.registry, session.store, self.poller.was_pressed)

        self.player_var = tk.StringVar(value=self._player_text(self.player))
        self.policy_var = tk.StringVar(value=session.resolver.policy.value)
        self.status_var = tk.StringVar(value="Ready")

        self._actions: list[ActionId] = []
        self._buttons: list[tk.Button] = []
        self._layout: Layout | None = None
        self._focused = 0
        self._capturing: ActionId | None = None
        self._pressed_mods: set[str] = set()

        self._build_ui()
        self._rebuild_grid()

    @staticmethod
    def _player_text(player: int) -> str:
        return f"Player {player + 1}"

    def _build_ui(self) -> None:
        top = tk.Frame(self.root)
        top.pack(fill="x", padx=10, pady=(10, 4))
        tk.Label(top, text="Player").pack(side="left")
        players = [self._player_text(p) for p in range(self.session.players)]
        player_box = ttk.Combobox(top, textvariable=self.player_var, values=players, width=10, state="readonly")
        player_box.pack(side="left", padx=(4, 12))
        player_box.bind("<<ComboboxSelected>>", lambda _e: self._on_player_selected())

        tk.Label(top, text="Conflicts").pack(side="left")
        policy_box = ttk.Combobox(
            top,
            textvariable=self.policy_var,
            values=[p.value for p in ConflictPolicy],
            width=10,
            state="readonly",
        )
        policy_box.pack(side="left", padx=(4, 0))
        policy_box.bind("<<ComboboxSelected>>", lambda _e: self._on_policy_selected())

        width, height = self._table_pixels()
        self.table = tk.Frame(self.root, width=width, height=height, bd=1, relief=tk.SOLID)
        self.table.pack(padx=10, pady=6)
        self.table.pack_propagate(False)

        tk.Label(
            self.root,
            textvariable=self.status_var,
            anchor="w",
            justify="left",
            wraplength=width,
        ).pack(fill="x", padx=10, pady=(0, 10))

        self.root.bind("<KeyPress>", self._on_keypress)
        self.root.bind("<KeyRelease>", self._on_keyrelease)
        self.root.protocol("WM_DELETE_WINDOW", self._on_close)

    def _table_pixels(self) -> tuple[int, int]:
        w, h = self.session.layout_engine.settings.table_size
        return int(w * self.TABLE_SCALE), int(h * self.TABLE_SCALE)

    def _rebuild_grid(self) -> None:
        for button in self._buttons:
            button.destroy()
        self._buttons = []
        self._actions = self.session.actions(self.player)
        self._layout = self.session.layout_for(self.player)
        self._focused = 0
        self._capturing = None

        scale = self.TABLE_SCALE
        for placement in self._layout.placements:
            action = self._actions[placement.index]
            font_size = max(6, round(self.BASE_FONT_SIZE * min(placement.text_scale)))
            button = tk.Button(
                self.table,
                text=self.session.label_for(self.player, action),
                font=("TkDefaultFont", font_size),
                relief=tk.FLAT,
                takefocus=0,
                command=lambda i=placement.index: self._start_capture(i),
            )
            button.place(
                x=placement.anchor[0] * scale,
                y=-placement.anchor[1] * scale,
                width=placement.size[0] * scale,
                height=placement.size[1] * scale,
                anchor="center",
            )
            self._buttons.append(button)
        self._refresh_focus()
        self.log.info("controls_grid_built player=%s buttons=%s", self.player, len(self._buttons))

    def _refresh_focus(self) -> None:
        for i, button in enumerate(self._buttons):
            if i == self._focused:
                button.configure(bg="#1E88E5" if self._capturing is None else "#C62828", fg="#FFFFFF")
            else:
                button.configure(bg="#F6F6F6", fg="#222222")

    def _start_capture(self, index: int) -> None:
        self._focused = index
        self._capturing = self._actions[index]
        unbind = self.session.resolver.unbind_input
        hint = f" ({unbind} clears)" if unbind else ""
        self.status_var.set(f"Press a key for {self.session.names.label(self._capturing)}{hint}")
        self._refresh_focus()

    def _on_keypress(self, event: tk.Event) -> str | None:
        keysym = getattr(event, "keysym", "")
        mod = _keysym_to_mod(keysym)
        if mod:
            self._pressed_mods.add(mod)
            return None

        if self._capturing is not None:
            token = _keysym_to_token(keysym)
            if not token:
                self.status_var.set(f"Unsupported key: {keysym}")
                return "break"
            self._assign(self._capturing, "+".join([*self._pressed_mods, token]))
            return "break"

        if keysym in NAV_KEYSYMS and self._layout is not None and not self._layout.is_empty:
            self._focused = self._layout.navigation[self._focused].get(NAV_KEYSYMS[keysym])
            self._refresh_focus()
            return "break"
        if keysym in {"Return", "space"} and self._buttons:
            self._start_capture(self._focused)
            return "break"
        return None

    def _on_keyrelease(self, event: tk.Event) -> None:
        mod = _keysym_to_mod(getattr(event, "keysym", ""))
        if mod:
            self._pressed_mods.discard(mod)

    def _assign(self, action: ActionId, combo: str) -> None:
        self._capturing = None
        try:
            changes = self.session.resolver.assign(self.player, action, normalize_input(combo))
        except Exception as exc:
            self.log.exception("binding_assign_failed action=%s", action.key)
            self.status_var.set(f"Binding failed: {exc}")
            self._refresh_focus()
            return
        self._apply_changes(changes)
        self._refresh_focus()

    def _apply_changes(self, changes: list[BindingChange]) -> None:
        for change in changes:
            index = self._actions.index(change.action)
            self._buttons[index].configure(text=self.session.label_for(self.player, change.action))
        if changes:
            self.status_var.set(", ".join(self.session.label_for(self.player, c.action) for c in changes))
        else:
            self.status_var.set("Binding unchanged")

    def _on_player_selected(self) -> None:
        text = self.player_var.get()
        self.player = int(text.rsplit(" ", 1)[-1]) - 1
        self._rebuild_grid()

    def _on_policy_selected(self) -> None:
        policy = ConflictPolicy.parse(self.policy_var.get())
        self.session.resolver.set_policy(policy)
        self.config.conflict_policy = policy
        try:
            save_config(self.config_path, self.config, self.log)
        except OSError as exc:
            self.log.exception("config_save_failed")
            self.status_var.set(f"Settings save failed: {exc}")
            return
        self.status_var.set(f"{policy.value}: {policy.description}")

    def _tick(self) -> None:
        self.poller.begin_frame()
        if self._capturing is None:
            fired = self.dispatcher.poll(self.player)
            if fired:
                self.status_var.set("Pressed: " + ", ".join(self.session.names.label(a) for a in fired))
        self.root.after(self.TICK_MS, self._tick)

    def _on_close(self) -> None:
        self.keyboard.stop()
        self.joystick.stop()
        self.root.destroy()

    def run(self) -> None:
        self.keyboard.start()
        self.joystick.start()
        if self.keyboard.error:
            self.log.warning("keyboard_unavailable error=%s", self.keyboard.error)
        if self.joystick.error:
            self.log.warning("controller_unavailable error=%s", self.joystick.error)
        if sys.platform == "darwin" and not self.keyboard.available:
            self.status_var.set("Global key polling needs macOS Accessibility permission")
        self._tick()
        self.root.mainloop()
