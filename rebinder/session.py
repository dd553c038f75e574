from __future__ import annotations

import logging

from .actions import ActionId, ActionRegistry
from .bindings import BindingStore, VanillaFieldTable
from .config import RebinderConfig
from .conflicts import DEFAULT_UNBIND_INPUT, ConflictPolicy, ConflictResolver
from .inputs import human_input_label
from .layout import Layout, LayoutEngine, LayoutSettings
from .names import DisplayNameResolver
from .settings import SettingsStore


class ControlsSession:
    """Owns one registry and the components built on top of it."""

    def __init__(
        self,
        players: int = 2,
        policy: ConflictPolicy = ConflictPolicy.SWAP,
        unbind_input: str | None = DEFAULT_UNBIND_INPUT,
        layout_settings: LayoutSettings | None = None,
        settings: SettingsStore | None = None,
        vanilla_fields: VanillaFieldTable | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        self.log = log or logging.getLogger("rebinder.session")
        self.settings = settings if settings is not None else SettingsStore()
        self.registry = ActionRegistry(players)
        self.store = BindingStore(self.registry, self.settings, vanilla_fields)
        self.resolver = ConflictResolver(self.registry, self.store, policy, unbind_input)
        self.layout_engine = LayoutEngine(layout_settings)
        self.names = DisplayNameResolver(self.registry)

    @classmethod
    def from_config(
        cls,
        config: RebinderConfig,
        settings: SettingsStore | None = None,
        vanilla_fields: VanillaFieldTable | None = None,
    ) -> ControlsSession:
        session = cls(
            players=config.players,
            policy=config.conflict_policy,
            unbind_input=config.unbind_input,
            layout_settings=LayoutSettings(max_columns=config.max_columns, min_rows=config.min_rows),
            settings=settings,
            vanilla_fields=vanilla_fields,
        )
        session.registry.register_vanilla()
        for player in sorted(config.custom_actions):
            for name in config.custom_actions[player]:
                session.registry.register_custom(player, name)
        session.log.info(
            "session_started players=%s policy=%s actions=%s",
            config.players,
            session.resolver.policy.value,
            [session.registry.count(p) for p in range(config.players)],
        )
        return session

    @property
    def players(self) -> int:
        return self.registry.players

    def actions(self, player: int) -> list[ActionId]:
        return list(self.registry.all_actions(player))

    def layout_for(self, player: int) -> Layout:
        return self.layout_engine.compute(self.registry.count(player))

    def label_for(self, player: int, action: ActionId) -> str:
        return f"{self.names.label(action)}: {human_input_label(self.store.current_input(player, action))}"
