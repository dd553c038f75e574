from __future__ import annotations

from .actions import NAMESPACE_PREFIX, VANILLA_BY_KEY, ActionId, ActionRegistry, raw_id


def resolve_display_name(raw: str, prefix: str = NAMESPACE_PREFIX) -> str:
    if prefix and raw.startswith(prefix):
        return raw[len(prefix):]
    return raw


class DisplayNameResolver:
    def __init__(self, registry: ActionRegistry, prefix: str = NAMESPACE_PREFIX) -> None:
        self.registry = registry
        self.prefix = prefix

    def resolve(self, raw: str) -> str:
        return resolve_display_name(raw, self.prefix)

    def label(self, action: ActionId) -> str:
        self.registry.require(action.player, action)
        if not action.is_custom:
            return VANILLA_BY_KEY[action.key].title
        return self.resolve(raw_id(action))
