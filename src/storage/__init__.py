"""Persistence: cached posts, preferences and tracked forums."""
from .database import init_database
from .cache import CacheStore
from .prefs import PreferencesStore, REFRESH_CIRCLE, OPEN_IN_SAFARI
from .options import OptionsStore

__all__ = [
    "init_database",
    "CacheStore",
    "PreferencesStore",
    "REFRESH_CIRCLE",
    "OPEN_IN_SAFARI",
    "OptionsStore",
]
