from __future__ import annotations

import logging
from pathlib import Path
import sys

from .actions import ActionId
from .config import RebinderConfig, save_config
from .conflicts import BindingChange, ConflictPolicy
from .controller import JoystickPoller
from .dispatch import ActionDispatcher, CompositePoller
from .hotkeys import KeyboardPoller
from .inputs import normalize_input
from .layout import Layout
from .session import ControlsSession


def _qt_imports():
    from PySide6.QtCore import QEvent, QObject, QTimer, Qt
    from PySide6.QtGui import QKeySequence
    from PySide6.QtWidgets import (
        QApplication,
        QComboBox,
        QFrame,
        QHBoxLayout,
        QLabel,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )

    return {
        "QApplication": QApplication,
        "QComboBox": QComboBox,
        "QEvent": QEvent,
        "QFrame": QFrame,
        "QHBoxLayout": QHBoxLayout,
        "QKeySequence": QKeySequence,
        "QLabel": QLabel,
        "QObject": QObject,
        "QPushButton": QPushButton,
        "QTimer": QTimer,
        "Qt": Qt,
        "QVBoxLayout": QVBoxLayout,
        "QWidget": QWidget,
    }


def _qt_portable_to_internal(portable: str) -> str | None:
    if not portable:
        return None
    parts = [p.strip() for p in portable.split("+") if p.strip()]
    mapped: list[str] = []
    for p in parts:
        pl = p.lower()
        mapped.append({"meta": "cmd", "return": "enter", "pgup": "page_up", "pgdown": "page_down"}.get(pl, pl))
    return normalize_input("+".join(mapped))


def _make_key_filter(QObject, QEvent, handler):
    class _KeyFilter(QObject):
        def eventFilter(self, obj, event):  # noqa: N802
            if event.type() == QEvent.Type.KeyPress:
                return bool(handler(event))
            return False

    return _KeyFilter()


class ControlsQtApp:
    TABLE_SCALE = 3.0
    BASE_FONT_SIZE = 13
    TICK_MS = 16

    def __init__(self, session: ControlsSession, config: RebinderConfig, config_path: Path, player: int = 0) -> None:
        self.qt = _qt_imports()
        self.Qt = self.qt["Qt"]
        self.QKeySequence = self.qt["QKeySequence"]
        self.QPushButton = self.qt["QPushButton"]

        self.log = logging.getLogger("rebinder")
        self.session = session
        self.config = config
        self.config_path = Path(config_path)
        self.player = session.registry.check_player(player)
        self.keyboard = KeyboardPoller()
        self.joystick = JoystickPoller()
        self.poller = CompositePoller(self.keyboard, self.joystick)
        self.dispatcher = ActionDispatcher(session.registry, session.store, self.poller.was_pressed)

        self._actions: list[ActionId] = []
        self._buttons: list[object] = []
        self._layout: Layout | None = None
        self._focused = 0
        self._capturing: ActionId | None = None

        QApplication = self.qt["QApplication"]
        self.qt_app = QApplication.instance() or QApplication(sys.argv)
        self.window = self.qt["QWidget"]()
        self.window.setWindowTitle("Controls")
        self.window.setObjectName("MainWindow")
        self._build_ui()
        self._key_filter = _make_key_filter(self.qt["QObject"], self.qt["QEvent"], self._on_key_press)
        self.qt_app.installEventFilter(self._key_filter)
        self._rebuild_grid()

        self.ui_timer = self.qt["QTimer"](self.window)
        self.ui_timer.timeout.connect(self._tick)  # type: ignore[attr-defined]

    def _build_ui(self) -> None:
        vbox = self.qt["QVBoxLayout"](self.window)
        vbox.setContentsMargins(16, 16, 16, 16)
        vbox.setSpacing(10)

        top = self.qt["QHBoxLayout"]()
        top.addWidget(self.qt["QLabel"]("Player"))
        self.player_combo = self.qt["QComboBox"]()
        for p in range(self.session.players):
            self.player_combo.addItem(f"Player {p + 1}", p)
        self.player_combo.setCurrentIndex(self.player)
        self.player_combo.currentIndexChanged.connect(self._on_player_selected)  # type: ignore[attr-defined]
        top.addWidget(self.player_combo)

        top.addWidget(self.qt["QLabel"]("Conflicts"))
        self.policy_combo = self.qt["QComboBox"]()
        for policy in ConflictPolicy:
            self.policy_combo.addItem(policy.value, policy.value)
            self.policy_combo.setItemData(self.policy_combo.count() - 1, policy.description, self.Qt.ToolTipRole)
        self.policy_combo.setCurrentIndex(list(ConflictPolicy).index(self.session.resolver.policy))
        self.policy_combo.currentIndexChanged.connect(self._on_policy_selected)  # type: ignore[attr-defined]
        top.addWidget(self.policy_combo)
        top.addStretch(1)
        vbox.addLayout(top)

        w, h = self.session.layout_engine.settings.table_size
        self.table = self.qt["QFrame"]()
        self.table.setObjectName("Table")
        self.table.setFixedSize(int(w * self.TABLE_SCALE), int(h * self.TABLE_SCALE))
        self.table.setStyleSheet("QFrame#Table { border: 1px solid rgba(0,0,0,0.15); }")
        vbox.addWidget(self.table)

        self.status_label = self.qt["QLabel"]("Ready")
        self.status_label.setWordWrap(True)
        vbox.addWidget(self.status_label)

    def _rebuild_grid(self) -> None:
        for button in self._buttons:
            button.deleteLater()
        self._buttons = []
        self._actions = self.session.actions(self.player)
        self._layout = self.session.layout_for(self.player)
        self._focused = 0
        self._capturing = None

        scale = self.TABLE_SCALE
        for placement in self._layout.placements:
            action = self._actions[placement.index]
            button = self.QPushButton(self.session.label_for(self.player, action), self.table)
            button.setFocusPolicy(self.Qt.NoFocus)
            w = int(placement.size[0] * scale)
            h = int(placement.size[1] * scale)
            x = int(placement.anchor[0] * scale - w / 2)
            y = int(-placement.anchor[1] * scale - h / 2)
            button.setGeometry(x, y, w, h)
            font = button.font()
            font.setPointSizeF(max(6.0, self.BASE_FONT_SIZE * min(placement.text_scale)))
            button.setFont(font)
            button.clicked.connect(lambda _checked=False, i=placement.index: self._start_capture(i))  # type: ignore[attr-defined]
            button.show()
            self._buttons.append(button)
        self._refresh_focus()
        self.log.info("controls_grid_built player=%s buttons=%s", self.player, len(self._buttons))

    def _refresh_focus(self) -> None:
        for i, button in enumerate(self._buttons):
            if i == self._focused:
                color = "#0078D4" if self._capturing is None else "#C42B1C"
                button.setStyleSheet(f"background: {color}; color: white; border: none;")
            else:
                button.setStyleSheet("background: #FAFAFA; color: #1F1F1F; border: none;")

    def _start_capture(self, index: int) -> None:
        self._focused = index
        self._capturing = self._actions[index]
        unbind = self.session.resolver.unbind_input
        hint = f" ({unbind} clears)" if unbind else ""
        self.status_label.setText(f"Press a key for {self.session.names.label(self._capturing)}{hint}")
        self._refresh_focus()

    def _on_key_press(self, event) -> bool:
        if not self.window.isActiveWindow():
            return False
        key = event.key()
        if key in {self.Qt.Key_Shift, self.Qt.Key_Control, self.Qt.Key_Alt, self.Qt.Key_Meta}:
            return False

        if self._capturing is not None:
            portable = self.QKeySequence(event.keyCombination()).toString(self.QKeySequence.PortableText)
            token = _qt_portable_to_internal(portable)
            if token is None:
                self.status_label.setText(f"Unsupported key: {portable or key}")
                return True
            self._assign(self._capturing, token)
            return True

        directions = {
            self.Qt.Key_Up: "up",
            self.Qt.Key_Down: "down",
            self.Qt.Key_Left: "left",
            self.Qt.Key_Right: "right",
        }
        if key in directions and self._layout is not None and not self._layout.is_empty:
            self._focused = self._layout.navigation[self._focused].get(directions[key])
            self._refresh_focus()
            return True
        if key in {self.Qt.Key_Return, self.Qt.Key_Enter, self.Qt.Key_Space} and self._buttons:
            self._start_capture(self._focused)
            return True
        return False

    def _assign(self, action: ActionId, token: str) -> None:
        self._capturing = None
        try:
            changes = self.session.resolver.assign(self.player, action, token)
        except Exception as exc:
            self.log.exception("binding_assign_failed action=%s", action.key)
            self.status_label.setText(f"Binding failed: {exc}")
            self._refresh_focus()
            return
        self._apply_changes(changes)
        self._refresh_focus()

    def _apply_changes(self, changes: list[BindingChange]) -> None:
        for change in changes:
            index = self._actions.index(change.action)
            self._buttons[index].setText(self.session.label_for(self.player, change.action))
        if changes:
            self.status_label.setText(", ".join(self.session.label_for(self.player, c.action) for c in changes))
        else:
            self.status_label.setText("Binding unchanged")

    def _on_player_selected(self, index: int) -> None:
        self.player = int(self.player_combo.itemData(index))
        self._rebuild_grid()

    def _on_policy_selected(self, index: int) -> None:
        policy = ConflictPolicy.parse(self.policy_combo.itemData(index))
        self.session.resolver.set_policy(policy)
        self.config.conflict_policy = policy
        try:
            save_config(self.config_path, self.config, self.log)
        except OSError as exc:
            self.log.exception("config_save_failed")
            self.status_label.setText(f"Settings save failed: {exc}")
            return
        self.status_label.setText(f"{policy.value}: {policy.description}")

    def _tick(self) -> None:
        self.poller.begin_frame()
        if self._capturing is None:
            fired = self.dispatcher.poll(self.player)
            if fired:
                self.status_label.setText("Pressed: " + ", ".join(self.session.names.label(a) for a in fired))

    def run(self) -> None:
        self.keyboard.start()
        self.joystick.start()
        if self.keyboard.error:
            self.log.warning("keyboard_unavailable error=%s", self.keyboard.error)
        if self.joystick.error:
            self.log.warning("controller_unavailable error=%s", self.joystick.error)
        self.window.show()
        self.ui_timer.start(self.TICK_MS)
        try:
            self.qt_app.exec()
        finally:
            self.keyboard.stop()
            self.joystick.stop()
