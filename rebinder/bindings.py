from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Callable, Mapping

from .actions import ActionId, ActionRegistry, Scope, setting_key
from .inputs import InputIdentifier, decode_input, encode_input, normalize_input
from .settings import Setting, SettingsStore


@dataclass(frozen=True)
class FieldAccessor:
    """Typed get/set pair for one host-owned vanilla input field."""

    get: Callable[[int], object]
    set: Callable[[int, InputIdentifier | None], None]


VanillaFieldTable = Mapping[str, FieldAccessor]


class BindingStore:
    def __init__(
        self,
        registry: ActionRegistry,
        settings: SettingsStore | None = None,
        vanilla_fields: VanillaFieldTable | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings if settings is not None else SettingsStore()
        self.vanilla_fields = dict(vanilla_fields or {})
        self.log = log or logging.getLogger("rebinder.bindings")
        self._table: list[dict[ActionId, InputIdentifier | None]] = [{} for _ in range(registry.players)]

    def current_input(self, player: int, action: ActionId) -> InputIdentifier | None:
        self.registry.require(player, action)
        slot = self._table[player]
        if action not in slot:
            slot[action] = self._initial_value(action)
        return slot[action]

    def set_input(self, player: int, action: ActionId, value: object) -> None:
        self.registry.require(player, action)
        norm = normalize_input(value)
        self._table[player][action] = norm
        self._setting_for(action).value = encode_input(norm)
        accessor = self._vanilla_accessor(action)
        if accessor is not None:
            accessor.set(player, norm)

    def bindings(self, player: int) -> dict[ActionId, InputIdentifier | None]:
        return {action: self.current_input(player, action) for action in self.registry.all_actions(player)}

    def actions_bound_to(self, player: int, value: object) -> list[ActionId]:
        norm = normalize_input(value)
        if norm is None:
            return []
        return [a for a in self.registry.all_actions(player) if self.current_input(player, a) == norm]

    def _initial_value(self, action: ActionId) -> InputIdentifier | None:
        accessor = self._vanilla_accessor(action)
        if accessor is not None:
            value = normalize_input(accessor.get(action.player))
            self._setting_for(action).value = encode_input(value)
            return value
        return decode_input(self._setting_for(action).value)

    def _setting_for(self, action: ActionId) -> Setting[str]:
        return self.settings.setting(setting_key(action), encode_input(None))

    def _vanilla_accessor(self, action: ActionId) -> FieldAccessor | None:
        if action.scope is not Scope.VANILLA:
            return None
        return self.vanilla_fields.get(action.key)
