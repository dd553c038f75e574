from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar


T = TypeVar("T")
ChangeHandler = Callable[[str, object, object], None]


class Setting(Generic[T]):
    """One persisted value with change notification.

    Subscribers are called with ``(key, old, new)`` after the value changes;
    setting an equal value is silent.
    """

    def __init__(self, key: str, default: T) -> None:
        self.key = key
        self.default = default
        self._value: T = default
        self._handlers: list[ChangeHandler] = []

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new: T) -> None:
        old = self._value
        if old == new:
            return
        self._value = new
        for handler in list(self._handlers):
            handler(self.key, old, new)

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        self._handlers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return _unsubscribe

    def reset(self) -> None:
        self.value = self.default

    def __repr__(self) -> str:
        return f"Setting({self.key!r}, value={self._value!r})"


class SettingsStore:
    def __init__(self, log: logging.Logger | None = None) -> None:
        self._settings: dict[str, Setting] = {}
        self._pending: dict[str, object] = {}
        self.log = log or logging.getLogger("rebinder.settings")

    def setting(self, key: str, default: T) -> Setting[T]:
        existing = self._settings.get(key)
        if existing is not None:
            return existing
        created: Setting[T] = Setting(key, default)
        if key in self._pending:
            created.value = self._pending.pop(key)  # type: ignore[assignment]
        self._settings[key] = created
        return created

    def get(self, key: str, default: object = None) -> object:
        existing = self._settings.get(key)
        if existing is not None:
            return existing.value
        return self._pending.get(key, default)

    def __contains__(self, key: object) -> bool:
        return key in self._settings or key in self._pending

    def snapshot(self) -> dict[str, object]:
        out = dict(self._pending)
        out.update({key: s.value for key, s in self._settings.items()})
        return out

    def load(self, values: dict[str, object]) -> None:
        for key, value in values.items():
            existing = self._settings.get(key)
            if existing is not None:
                existing.value = value
            else:
                # kept until someone asks for the setting
                self._pending[key] = value
        self.log.info("settings_loaded count=%s", len(values))
