from __future__ import annotations

import pytest

from rebinder.actions import ActionRegistry
from rebinder.bindings import BindingStore
from rebinder.conflicts import ConflictPolicy, ConflictResolver
from rebinder.settings import SettingsStore


@pytest.fixture
def settings() -> SettingsStore:
    return SettingsStore()


@pytest.fixture
def registry() -> ActionRegistry:
    return ActionRegistry(players=2)


@pytest.fixture
def store(registry: ActionRegistry, settings: SettingsStore) -> BindingStore:
    return BindingStore(registry, settings)


@pytest.fixture
def resolver(registry: ActionRegistry, store: BindingStore) -> ConflictResolver:
    return ConflictResolver(registry, store, ConflictPolicy.SWAP, unbind_input="delete")


@pytest.fixture
def two_actions(registry: ActionRegistry):
    a = registry.register_custom(0, "A")
    b = registry.register_custom(0, "B")
    return a, b
