"""
Listener records and payload aliases for the garden EventBus.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

EventPayload = dict[str, Any]

CallbackType = Callable[[EventPayload], Union[Any, Awaitable[Any]]]


@dataclass(slots=True, frozen=True)
class EventListener:
    """
    One subscription.

    ``identifier`` deduplicates and unsubscribes; ``once`` listeners are
    dropped from the registry as soon as an event selects them.
    """

    callback: CallbackType
    identifier: str
    once: bool = False

    @staticmethod
    def default_identifier(callback: CallbackType, event_name: str) -> str:
        """``module.qualname@event``, e.g. ``app.on_level_up@garden.plant.levelled_up``."""
        owner = getattr(callback, "__module__", None) or "anonymous"
        name = getattr(callback, "__qualname__", None) or type(callback).__name__
        return f"{owner}.{name}@{event_name}"

    @classmethod
    def from_callback(
        cls,
        event_name: str,
        callback: CallbackType,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> EventListener:
        return cls(
            callback=callback,
            identifier=identifier or cls.default_identifier(callback, event_name),
            once=once,
        )
