"""
Preference storage: a get/set key-value surface for per-user settings.
"""

from .store import (
    InMemoryPreferenceStore,
    PreferenceStore,
    PreferenceUnavailableError,
    RedisPreferenceStore,
    create_preference_store,
)

__all__ = [
    "PreferenceStore",
    "PreferenceUnavailableError",
    "InMemoryPreferenceStore",
    "RedisPreferenceStore",
    "create_preference_store",
]
