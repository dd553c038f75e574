from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Iterator

from .errors import DuplicateActionError, PlayerSlotError, UnknownActionError


NAMESPACE_PREFIX = "CustomControls_"
DEFAULT_PLAYERS = 2


class Scope(Enum):
    VANILLA = "vanilla"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ActionId:
    scope: Scope
    player: int
    key: str

    @property
    def is_custom(self) -> bool:
        return self.scope is Scope.CUSTOM


@dataclass(frozen=True)
class VanillaAction:
    key: str
    field_name: str
    title: str


# Order matters: it is the registration order and therefore the grid order.
VANILLA_ACTIONS = (
    VanillaAction("interact", "interact", "Interact"),
    VanillaAction("aimlock", "aimLock", "Aim Lock"),
    VanillaAction("guard", "guard", "Guard"),
    VanillaAction("sword", "weapon0Input", "Sword"),
    VanillaAction("dash", "dash", "Dash"),
    VanillaAction("heal", "heal", "Heal"),
    VanillaAction("gun", "weapon1Input", "Gun"),
    VanillaAction("pause", "pause", "Pause"),
    VanillaAction("reload", "reload", "Reload"),
    VanillaAction("map", "map", "Map"),
    VanillaAction("run", "run", "Run"),
    VanillaAction("up", "up", "Up"),
    VanillaAction("left", "left", "Left"),
    VanillaAction("right", "right", "Right"),
    VanillaAction("down", "down", "Down"),
)
VANILLA_BY_KEY = {a.key: a for a in VANILLA_ACTIONS}


def setting_key(action: ActionId) -> str:
    # Custom keys join with "_" and vanilla keys with ".", so the two scopes never share a setting.
    sep = "_" if action.is_custom else "."
    return f"{NAMESPACE_PREFIX}Player{action.player + 1}{sep}{action.key}"


def raw_id(action: ActionId) -> str:
    if action.is_custom:
        return f"{NAMESPACE_PREFIX}{action.key}"
    return action.key


class ActionRegistry:
    def __init__(self, players: int = DEFAULT_PLAYERS, log: logging.Logger | None = None) -> None:
        if players < 1:
            raise PlayerSlotError("At least one player slot is required", players=players)
        self.players = int(players)
        self.log = log or logging.getLogger("rebinder.actions")
        self._vanilla_registered = False
        self._custom: list[list[ActionId]] = [[] for _ in range(self.players)]
        self._custom_keys: list[set[str]] = [set() for _ in range(self.players)]

    @property
    def vanilla_registered(self) -> bool:
        return self._vanilla_registered

    def check_player(self, player: int) -> int:
        if not isinstance(player, int) or not 0 <= player < self.players:
            raise PlayerSlotError(player=player, players=self.players)
        return player

    def register_vanilla(self) -> None:
        if self._vanilla_registered:
            return
        self._vanilla_registered = True
        self.log.info("vanilla_actions_registered count=%s players=%s", len(VANILLA_ACTIONS), self.players)

    def register_custom(self, player: int, name: str) -> ActionId:
        self.check_player(player)
        key = str(name).strip()
        if not key:
            raise ValueError("custom action name must not be empty")
        if key in self._custom_keys[player]:
            raise DuplicateActionError(player=player, name=key)
        action = ActionId(Scope.CUSTOM, player, key)
        self._custom[player].append(action)
        self._custom_keys[player].add(key)
        self.log.info("custom_action_registered player=%s name=%s", player, key)
        return action

    def all_actions(self, player: int) -> Iterator[ActionId]:
        self.check_player(player)
        if self._vanilla_registered:
            for vanilla in VANILLA_ACTIONS:
                yield ActionId(Scope.VANILLA, player, vanilla.key)
        # snapshot so registration during iteration does not skew the scan
        yield from tuple(self._custom[player])

    def custom_actions(self, player: int) -> tuple[ActionId, ...]:
        self.check_player(player)
        return tuple(self._custom[player])

    def count(self, player: int) -> int:
        self.check_player(player)
        vanilla = len(VANILLA_ACTIONS) if self._vanilla_registered else 0
        return vanilla + len(self._custom[player])

    def is_registered(self, action: ActionId) -> bool:
        if not isinstance(action, ActionId) or not 0 <= action.player < self.players:
            return False
        if action.scope is Scope.VANILLA:
            return self._vanilla_registered and action.key in VANILLA_BY_KEY
        return action.key in self._custom_keys[action.player]

    def require(self, player: int, action: ActionId) -> ActionId:
        self.check_player(player)
        if not isinstance(action, ActionId) or action.player != player or not self.is_registered(action):
            raise UnknownActionError(player=player, action=action)
        return action

    def find(self, player: int, key: str) -> ActionId:
        """Look up an action by key, custom names first, then vanilla keys."""
        self.check_player(player)
        if key in self._custom_keys[player]:
            return ActionId(Scope.CUSTOM, player, key)
        if self._vanilla_registered and key in VANILLA_BY_KEY:
            return ActionId(Scope.VANILLA, player, key)
        raise UnknownActionError(player=player, key=key)
