from __future__ import annotations

import logging
from typing import Callable, Protocol

from .actions import ActionId, ActionRegistry
from .bindings import BindingStore


WasPressed = Callable[[str], bool]


class InputPoller(Protocol):
    def begin_frame(self) -> None: ...

    def was_pressed(self, value: object) -> bool: ...


class CompositePoller:
    def __init__(self, *pollers: InputPoller) -> None:
        self.pollers = list(pollers)

    def begin_frame(self) -> None:
        for poller in self.pollers:
            poller.begin_frame()

    def was_pressed(self, value: object) -> bool:
        return any(p.was_pressed(value) for p in self.pollers)


class ActionDispatcher:
    """Turns per-frame input presses into the actions bound to them."""

    def __init__(self, registry: ActionRegistry, store: BindingStore, was_pressed: WasPressed) -> None:
        self.registry = registry
        self.store = store
        self.was_pressed = was_pressed
        self.log = logging.getLogger("rebinder.dispatch")

    def poll(self, player: int) -> list[ActionId]:
        fired: list[ActionId] = []
        for action in self.registry.all_actions(player):
            bound = self.store.current_input(player, action)
            if bound is not None and self.was_pressed(bound):
                fired.append(action)
        if fired:
            self.log.info("actions_fired player=%s actions=%s", player, [a.key for a in fired])
        return fired

    def first_pressed(self, player: int) -> ActionId | None:
        for action in self.registry.all_actions(player):
            bound = self.store.current_input(player, action)
            if bound is not None and self.was_pressed(bound):
                return action
        return None
