from __future__ import annotations

import pytest

from rebinder.actions import ActionId, ActionRegistry, Scope
from rebinder.bindings import BindingStore
from rebinder.conflicts import BindingChange, ConflictPolicy, ConflictResolver
from rebinder.errors import UnknownActionError
from rebinder.settings import SettingsStore


def _bind(store: BindingStore, action: ActionId, value: str | None) -> None:
    store.set_input(action.player, action, value)


def test_swap_scenario_from_empty(resolver: ConflictResolver, store: BindingStore, two_actions) -> None:
    a, b = two_actions
    resolver.assign(0, a, "K1")
    assert store.current_input(0, a) == "k1"
    changes = resolver.assign(0, b, "K1")
    assert store.current_input(0, b) == "k1"
    assert store.current_input(0, a) is None
    assert changes == [BindingChange(0, a, "k1", None), BindingChange(0, b, None, "k1")]


def test_swap_exchanges_inputs_and_is_idempotent(
    resolver: ConflictResolver, store: BindingStore, two_actions
) -> None:
    a, b = two_actions
    _bind(store, a, "y")
    _bind(store, b, "x")
    resolver.assign(0, a, "x")
    assert (store.current_input(0, a), store.current_input(0, b)) == ("x", "y")
    assert resolver.assign(0, a, "x") == []
    assert (store.current_input(0, a), store.current_input(0, b)) == ("x", "y")


def test_unbind_policy_clears_the_other_action(
    resolver: ConflictResolver, store: BindingStore, two_actions
) -> None:
    a, b = two_actions
    resolver.set_policy(ConflictPolicy.UNBIND)
    _bind(store, a, "y")
    _bind(store, b, "x")
    changes = resolver.assign(0, a, "x")
    assert store.current_input(0, a) == "x"
    assert store.current_input(0, b) is None
    assert [c.action for c in changes] == [b, a]


def test_duplicate_policy_keeps_both(resolver: ConflictResolver, store: BindingStore, two_actions) -> None:
    a, b = two_actions
    resolver.set_policy("duplicate")
    _bind(store, b, "x")
    changes = resolver.assign(0, a, "x")
    assert store.current_input(0, a) == store.current_input(0, b) == "x"
    assert changes == [BindingChange(0, a, None, "x")]


def test_duplicate_persists_until_a_resolving_assignment(
    registry: ActionRegistry, resolver: ConflictResolver, store: BindingStore, two_actions
) -> None:
    a, b = two_actions
    c = registry.register_custom(0, "C")
    resolver.set_policy(ConflictPolicy.DUPLICATE)
    resolver.assign(0, a, "x")
    resolver.assign(0, b, "x")
    resolver.set_policy(ConflictPolicy.SWAP)
    # switching policy does not touch existing duplicates
    assert store.current_input(0, a) == store.current_input(0, b) == "x"

    _bind(store, c, "z")
    resolver.assign(0, c, "x")
    # only the first collision in registration order is resolved
    assert store.current_input(0, a) == "z"
    assert store.current_input(0, b) == "x"
    assert store.current_input(0, c) == "x"


def test_unbind_symbol_always_clears(resolver: ConflictResolver, store: BindingStore, two_actions) -> None:
    a, b = two_actions
    for policy in ConflictPolicy:
        resolver.set_policy(policy)
        _bind(store, a, "q")
        _bind(store, b, "delete")
        changes = resolver.assign(0, a, "Delete")
        assert store.current_input(0, a) is None
        assert store.current_input(0, b) == "delete"
        assert changes == [BindingChange(0, a, "q", None)]


def test_none_request_skips_collision_search(
    resolver: ConflictResolver, store: BindingStore, two_actions
) -> None:
    a, b = two_actions
    _bind(store, a, "q")
    assert resolver.assign(0, a, None) == [BindingChange(0, a, "q", None)]
    assert resolver.clear(0, b) == []


def test_unbind_input_is_read_at_resolution_time(
    resolver: ConflictResolver, store: BindingStore, two_actions
) -> None:
    a, _ = two_actions
    resolver.set_unbind_input("backspace")
    _bind(store, a, "q")
    resolver.assign(0, a, "delete")
    assert store.current_input(0, a) == "delete"
    resolver.assign(0, a, "BackSpace")
    assert store.current_input(0, a) is None


def test_policy_changes_through_settings_store(
    resolver: ConflictResolver, store: BindingStore, two_actions
) -> None:
    a, b = two_actions
    resolver.policy_setting.value = "unbind"
    assert resolver.policy is ConflictPolicy.UNBIND
    _bind(store, b, "x")
    resolver.assign(0, a, "x")
    assert store.current_input(0, b) is None


def test_vanilla_and_custom_share_collision_namespace(
    registry: ActionRegistry, resolver: ConflictResolver, store: BindingStore
) -> None:
    registry.register_vanilla()
    dash = ActionId(Scope.VANILLA, 0, "dash")
    loadout = registry.register_custom(0, "Next Loadout")
    _bind(store, dash, "space")
    _bind(store, loadout, "tab")
    resolver.assign(0, loadout, "space")
    assert store.current_input(0, loadout) == "space"
    assert store.current_input(0, dash) == "tab"


def test_custom_action_named_like_vanilla_starts_unbound(
    registry: ActionRegistry, resolver: ConflictResolver, store: BindingStore
) -> None:
    registry.register_vanilla()
    dash = ActionId(Scope.VANILLA, 0, "dash")
    resolver.assign(0, dash, "space")
    custom_dash = registry.register_custom(0, "dash")
    assert store.current_input(0, custom_dash) is None

    resolver.assign(0, custom_dash, "e")
    assert store.current_input(0, dash) == "space"
    assert store.current_input(0, custom_dash) == "e"
    assert store.settings.get("CustomControls_Player1.dash") == "space"
    assert store.settings.get("CustomControls_Player1_dash") == "e"


@pytest.mark.parametrize("policy", [ConflictPolicy.SWAP, ConflictPolicy.UNBIND])
def test_new_input_is_never_shared_during_writes(
    resolver: ConflictResolver, store: BindingStore, settings: SettingsStore, two_actions, policy: ConflictPolicy
) -> None:
    a, b = two_actions
    _bind(store, a, "x")
    _bind(store, b, "y")
    resolver.set_policy(policy)
    keys = ["CustomControls_Player1_A", "CustomControls_Player1_B"]
    seen: list[list[object]] = []
    for key in keys:
        settings.setting(key, "None").subscribe(lambda *_: seen.append([settings.get(k) for k in keys]))
    resolver.assign(0, b, "x")
    assert seen
    assert all(values.count("x") <= 1 for values in seen)


def test_other_player_is_not_affected(
    registry: ActionRegistry, resolver: ConflictResolver, store: BindingStore
) -> None:
    p0 = registry.register_custom(0, "Dash")
    p1 = registry.register_custom(1, "Dash")
    _bind(store, p1, "space")
    resolver.assign(0, p0, "space")
    assert store.current_input(0, p0) == "space"
    assert store.current_input(1, p1) == "space"


def test_store_invariant_holds_after_random_assignments(
    registry: ActionRegistry, resolver: ConflictResolver, store: BindingStore
) -> None:
    registry.register_vanilla()
    actions = list(registry.all_actions(0))
    inputs = ["a", "b", "c", "d", None, "delete"]
    for policy in (ConflictPolicy.SWAP, ConflictPolicy.UNBIND):
        resolver.set_policy(policy)
        for step in range(60):
            action = actions[(step * 7) % len(actions)]
            resolver.assign(0, action, inputs[(step * 5) % len(inputs)])
            bound = [store.current_input(0, a) for a in actions if store.current_input(0, a) is not None]
            assert len(bound) == len(set(bound))


def test_assign_unknown_action_raises(resolver: ConflictResolver) -> None:
    with pytest.raises(UnknownActionError):
        resolver.assign(0, ActionId(Scope.CUSTOM, 0, "Ghost"), "k")


def test_policy_parse() -> None:
    assert ConflictPolicy.parse("Swap") is ConflictPolicy.SWAP
    assert ConflictPolicy.parse(ConflictPolicy.UNBIND) is ConflictPolicy.UNBIND
    with pytest.raises(ValueError):
        ConflictPolicy.parse("merge")
