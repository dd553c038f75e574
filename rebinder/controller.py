from __future__ import annotations

import logging
import os
import sys

from .inputs import InputIdentifier, normalize_input


def button_input(index: int) -> InputIdentifier:
    return f"joystickbutton{index}"


def _direction_from_hat(value: object) -> str | None:
    if not isinstance(value, tuple) or len(value) != 2:
        return None
    return {
        (0, 1): "dpad_up",
        (1, 0): "dpad_right",
        (0, -1): "dpad_down",
        (-1, 0): "dpad_left",
    }.get(value)


class JoystickPoller:
    """Polls one pygame joystick once per frame.

    Buttons are reported as ``joystickbutton<n>`` and hat directions as
    ``dpad_up`` / ``dpad_right`` / ``dpad_down`` / ``dpad_left``.
    """

    def __init__(self, device_index: int = 0, hat_index: int = 0, enabled: bool = True) -> None:
        self.device_index = device_index
        self.hat_index = hat_index
        self.enabled = bool(enabled)
        self.available = False
        self.error: str | None = None
        self.log = logging.getLogger("rebinder.controller")
        self._pygame = None
        self._joystick = None
        self._prev_pressed: set[InputIdentifier] = set()
        self._frame: frozenset[InputIdentifier] = frozenset()

    def start(self) -> None:
        if not self.enabled:
            self.error = "controller disabled"
            self.log.info("controller_disabled")
            return
        try:
            # Joystick state still needs SDL's event subsystem; no window is opened.
            if sys.platform != "darwin":
                os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
            import pygame  # type: ignore

            if sys.platform != "darwin":
                try:
                    pygame.display.init()
                except Exception as exc:
                    self.log.warning("controller_display_init_failed %s", exc)
            pygame.joystick.init()
            count = pygame.joystick.get_count()
            self.log.info("controller_devices_detected count=%s", count)
            if count <= self.device_index:
                self.error = f"controller not found at index {self.device_index} (count={count})"
                self.log.warning("controller_not_found %s", self.error)
                return
            joystick = pygame.joystick.Joystick(self.device_index)
            joystick.init()
        except Exception as exc:  # pragma: no cover
            self.error = f"controller backend failed: {exc}"
            self.log.exception("controller_backend_failed")
            return

        self._pygame = pygame
        self._joystick = joystick
        self.available = True
        self.log.info(
            "controller_connected name=%s index=%s hats=%s buttons=%s",
            joystick.get_name(),
            self.device_index,
            joystick.get_numhats(),
            joystick.get_numbuttons(),
        )

    def stop(self) -> None:
        if self._pygame is not None:
            try:
                self._pygame.joystick.quit()
            except Exception as exc:  # pragma: no cover
                self.log.warning("controller_quit_failed %s", exc)
        self._pygame = None
        self._joystick = None
        self.available = False

    def begin_frame(self) -> None:
        if not self.available:
            self._frame = frozenset()
            return
        pressed_now = self._read_pressed()
        newly = pressed_now - self._prev_pressed
        if newly:
            self.log.debug("controller_pressed inputs=%s", sorted(newly))
        self._prev_pressed = pressed_now
        self._frame = frozenset(newly)

    def was_pressed(self, value: object) -> bool:
        norm = normalize_input(value)
        return norm is not None and norm in self._frame

    def _read_pressed(self) -> set[InputIdentifier]:
        pygame = self._pygame
        joystick = self._joystick
        pressed: set[InputIdentifier] = set()
        try:
            pygame.event.pump()
        except Exception as exc:
            self.log.warning("controller_event_pump_failed %s", exc)
        for idx in range(joystick.get_numbuttons()):
            if joystick.get_button(idx):
                pressed.add(button_input(idx))
        if joystick.get_numhats() > self.hat_index:
            direction = _direction_from_hat(joystick.get_hat(self.hat_index))
            if direction is not None:
                pressed.add(direction)
        return pressed
