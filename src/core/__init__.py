"""
Core infrastructure layer for Habit Garden.

Purpose
-------
A single import surface for the infrastructure subsystems:

- Configuration (Config)
- Database subsystem (DatabaseService)
- Logging (get_logger, LogContext)
- Event bus (EventBus)
- Preference storage (PreferenceStore backends)

Re-exports only.
"""

from src.core.config import Config
from src.core.database import DatabaseService
from src.core.event import EventBus
from src.core.logging import LogContext, get_logger
from src.core.preferences import (
    InMemoryPreferenceStore,
    PreferenceStore,
    RedisPreferenceStore,
)

__all__ = [
    "Config",
    "DatabaseService",
    "EventBus",
    "LogContext",
    "get_logger",
    "PreferenceStore",
    "InMemoryPreferenceStore",
    "RedisPreferenceStore",
]
