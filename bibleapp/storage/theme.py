"""Light/dark theme preference."""

from __future__ import annotations

from enum import StrEnum

from bibleapp.storage.kv import KeyValueStore

THEME_KEY = "theme"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


class ThemePreference:
    """Saved theme, falling back to the system preference when none is saved."""

    def __init__(self, store: KeyValueStore, system_prefers_dark: bool = False) -> None:
        self._store = store
        self._system_prefers_dark = system_prefers_dark

    @property
    def saved(self) -> Theme | None:
        value = self._store.get(THEME_KEY)
        return Theme(value) if value in (Theme.LIGHT, Theme.DARK) else None

    @property
    def current(self) -> Theme:
        saved = self.saved
        if saved is not None:
            return saved
        return Theme.DARK if self._system_prefers_dark else Theme.LIGHT

    def toggle(self) -> Theme:
        new_theme = Theme.LIGHT if self.current == Theme.DARK else Theme.DARK
        self._store.set(THEME_KEY, new_theme.value)
        return new_theme

    def clear(self) -> None:
        self._store.remove(THEME_KEY)
