from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging

from .actions import ActionId, ActionRegistry, NAMESPACE_PREFIX
from .bindings import BindingStore
from .inputs import InputIdentifier, normalize_input


POLICY_SETTING_KEY = f"{NAMESPACE_PREFIX}BindingsConflictResolution"
UNBIND_SETTING_KEY = f"{NAMESPACE_PREFIX}UnbindButton"
DEFAULT_UNBIND_INPUT: str | None = None


class ConflictPolicy(Enum):
    SWAP = "swap"
    UNBIND = "unbind"
    DUPLICATE = "duplicate"

    @classmethod
    def parse(cls, value: object) -> ConflictPolicy:
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for policy in cls:
            if policy.value == text:
                return policy
        raise ValueError(f"unknown conflict policy: {value!r}")

    @property
    def description(self) -> str:
        return _POLICY_DESCRIPTIONS[self]


_POLICY_DESCRIPTIONS = {
    ConflictPolicy.SWAP: "the two conflicting buttons will swap places",
    ConflictPolicy.UNBIND: "the other button binding will be removed",
    ConflictPolicy.DUPLICATE: "allow for one button to be bound to many actions",
}


@dataclass(frozen=True)
class BindingChange:
    player: int
    action: ActionId
    old: InputIdentifier | None
    new: InputIdentifier | None


class ConflictResolver:
    def __init__(
        self,
        registry: ActionRegistry,
        store: BindingStore,
        policy: ConflictPolicy = ConflictPolicy.SWAP,
        unbind_input: str | None = DEFAULT_UNBIND_INPUT,
        log: logging.Logger | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.log = log or logging.getLogger("rebinder.conflicts")
        # Both live in the settings store so an outer settings layer can change them between calls.
        self.policy_setting = store.settings.setting(POLICY_SETTING_KEY, ConflictPolicy.parse(policy).value)
        self.unbind_setting = store.settings.setting(UNBIND_SETTING_KEY, normalize_input(unbind_input) or "")

    @property
    def policy(self) -> ConflictPolicy:
        return ConflictPolicy.parse(self.policy_setting.value)

    def set_policy(self, policy: ConflictPolicy | str) -> None:
        parsed = ConflictPolicy.parse(policy)
        self.policy_setting.value = parsed.value
        self.log.info("conflict_policy_set policy=%s", parsed.value)

    @property
    def unbind_input(self) -> InputIdentifier | None:
        return normalize_input(self.unbind_setting.value)

    def set_unbind_input(self, value: object) -> None:
        self.unbind_setting.value = normalize_input(value) or ""
        self.log.info("unbind_input_set input=%s", self.unbind_input)

    def assign(self, player: int, action: ActionId, requested: object) -> list[BindingChange]:
        self.registry.require(player, action)
        policy = self.policy
        target = normalize_input(requested)
        if target is not None and target == self.unbind_input:
            target = None

        previous = self.store.current_input(player, action)
        changes: list[BindingChange] = []

        if target is not None and policy is not ConflictPolicy.DUPLICATE:
            colliding = self._find_collision(player, action, target)
            if colliding is not None:
                replacement = previous if policy is ConflictPolicy.SWAP else None
                self._apply(player, colliding, replacement, changes)

        self._apply(player, action, target, changes)
        self.log.info(
            "binding_assigned player=%s action=%s old=%s new=%s policy=%s changes=%s",
            player,
            action.key,
            previous,
            target,
            policy.value,
            len(changes),
        )
        return changes

    def clear(self, player: int, action: ActionId) -> list[BindingChange]:
        return self.assign(player, action, None)

    def _find_collision(self, player: int, action: ActionId, target: InputIdentifier) -> ActionId | None:
        # First match in registration order; older duplicates beyond it are left alone.
        for other in self.registry.all_actions(player):
            if other == action:
                continue
            if self.store.current_input(player, other) == target:
                return other
        return None

    def _apply(
        self,
        player: int,
        action: ActionId,
        value: InputIdentifier | None,
        changes: list[BindingChange],
    ) -> None:
        old = self.store.current_input(player, action)
        if old == value:
            return
        self.store.set_input(player, action, value)
        changes.append(BindingChange(player, action, old, value))
