"""Theme preference persisted in the key-value store."""

from __future__ import annotations

from dal.kv_dal import KeyValueDAL

THEME_KEY = "theme"
THEMES = ("light", "dark")
DEFAULT_THEME = "dark"


class PreferenceService:
    def __init__(self, kv: KeyValueDAL) -> None:
        self._kv = kv

    async def get_theme(self) -> str:
        """Return the saved theme, falling back to the default when absent or unknown."""
        value = await self._kv.get(THEME_KEY)
        return value if value in THEMES else DEFAULT_THEME

    async def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"Theme must be one of: {', '.join(THEMES)}")
        await self._kv.set(THEME_KEY, theme)
        return theme
