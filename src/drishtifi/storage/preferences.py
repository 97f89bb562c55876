from __future__ import annotations

from ..errors import INVALID_THEME, StorageError, ValidationError
from ..logging import get_logger
from .kv import KeyValueStorage


LOG = get_logger("storage-preferences")

THEME_KEY = "theme"
THEMES = ("light", "dark")


class PreferenceStore:
    def __init__(self, storage: KeyValueStorage, *, default_theme: str = "light") -> None:
        self.storage = storage
        self.default_theme = default_theme if default_theme in THEMES else "light"

    def get_theme(self) -> str:
        try:
            stored = self.storage.get_item(THEME_KEY)
        except StorageError as exc:
            LOG.error("Failed to read theme preference: %s", exc)
            return self.default_theme
        return stored if stored in THEMES else self.default_theme

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValidationError(INVALID_THEME, "Theme must be 'light' or 'dark'.")
        try:
            self.storage.set_item(THEME_KEY, theme)
        except StorageError as exc:
            LOG.error("Failed to save theme preference: %s", exc)
        return theme

    def reset_theme(self) -> str:
        """Forget the stored choice and fall back to the configured default."""
        try:
            self.storage.remove_item(THEME_KEY)
        except StorageError as exc:
            LOG.error("Failed to clear theme preference: %s", exc)
        return self.default_theme

    def toggle_theme(self) -> str:
        return self.set_theme("dark" if self.get_theme() == "light" else "light")
