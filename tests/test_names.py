from __future__ import annotations

import pytest

from rebinder.actions import ActionId, ActionRegistry, Scope
from rebinder.errors import UnknownActionError
from rebinder.names import DisplayNameResolver, resolve_display_name


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("CustomControls_Next Loadout", "Next Loadout"),
        ("CustomControls_", ""),
        ("dash", "dash"),
        ("Loadout CustomControls_1", "Loadout CustomControls_1"),
    ],
)
def test_resolve_strips_namespace_prefix(raw: str, expected: str) -> None:
    assert resolve_display_name(raw) == expected


def test_resolver_labels(registry: ActionRegistry) -> None:
    registry.register_vanilla()
    custom = registry.register_custom(0, "Loadout 2")
    names = DisplayNameResolver(registry)
    assert names.resolve("CustomControls_Loadout 2") == "Loadout 2"
    assert names.label(custom) == "Loadout 2"
    assert names.label(ActionId(Scope.VANILLA, 0, "aimlock")) == "Aim Lock"
    with pytest.raises(UnknownActionError):
        names.label(ActionId(Scope.CUSTOM, 1, "Loadout 2"))


def test_custom_prefix() -> None:
    names = DisplayNameResolver(ActionRegistry(), prefix="Mod.")
    assert names.resolve("Mod.Jump") == "Jump"
    assert names.resolve("CustomControls_Jump") == "CustomControls_Jump"
