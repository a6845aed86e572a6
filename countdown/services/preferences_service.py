"""
Theme preference stored in the local cache.
"""

from typing import Optional

from countdown.core.config import get_settings
from countdown.interfaces.local_cache import ILocalCache
from countdown.models.enums import ThemeMode


class PreferencesService:
    """Reads and writes the theme preference. Unknown stored values read as SYSTEM."""

    def __init__(self, local_cache: ILocalCache, theme_key: Optional[str] = None):
        self._local_cache = local_cache
        self._theme_key = theme_key or get_settings().THEME_KEY

    async def get_theme(self) -> ThemeMode:
        raw = await self._local_cache.get(self._theme_key)
        try:
            return ThemeMode(raw)
        except (TypeError, ValueError):
            return ThemeMode.SYSTEM

    async def set_theme(self, mode: ThemeMode) -> ThemeMode:
        mode = ThemeMode(mode)
        await self._local_cache.set(self._theme_key, mode.value)
        return mode
