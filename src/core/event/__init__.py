"""
Event system for Habit Garden.

Provides an instance-based async EventBus plus a process-wide default
instance for applications that want one.
"""

from .bus import EventBus
from .types import CallbackType, EventListener, EventPayload

event_bus = EventBus()

__all__ = [
    "event_bus",
    "EventBus",
    "EventPayload",
    "EventListener",
    "CallbackType",
]
