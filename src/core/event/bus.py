"""
In-process async pub/sub for garden events.

The completion workflow publishes ``garden.activity.refresh_requested``
once a completion settles; the activity service listens and re-fetches
its snapshots rather than patching local state.

Names are dotted. A listener registered under ``garden.*`` receives every
event starting with ``garden.``; ``*`` receives everything. For a given
event, listeners registered under the exact name run first, then the
wildcard ones, each group in registration order. Listeners may be plain
functions or coroutines and are awaited concurrently. A listener that
raises is logged and counted; the rest still run.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import Counter
from typing import Any, Dict, List, Optional

from src.core.event.types import CallbackType, EventListener, EventPayload
from src.core.logging.logger import get_logger

logger = get_logger(__name__)


def _pattern_matches(pattern: str, event_name: str) -> bool:
    if pattern in ("*", event_name):
        return True
    return pattern.endswith(".*") and event_name.startswith(pattern[:-1])


def _require_single_argument(callback: CallbackType) -> None:
    try:
        parameters = inspect.signature(callback).parameters
    except (TypeError, ValueError):
        return  # no introspectable signature
    if len(parameters) != 1:
        name = getattr(callback, "__qualname__", repr(callback))
        raise ValueError(
            f"listener {name} must take exactly one payload argument, "
            f"takes {len(parameters)}"
        )


class EventBus:
    """
    >>> bus = EventBus()
    >>> bus.subscribe("garden.plant.levelled_up", on_level_up)
    >>> await bus.publish("garden.plant.levelled_up", {"plant_id": 3, "to_stage": 2})
    """

    def __init__(self) -> None:
        self._registry: Dict[str, List[EventListener]] = {}
        self._published: Counter[str] = Counter()
        self._failures: Counter[str] = Counter()

    def subscribe(
        self,
        event_name: str,
        callback: CallbackType,
        *,
        identifier: Optional[str] = None,
        once: bool = False,
    ) -> str:
        """
        Register ``callback`` for an event name or pattern.

        Returns the listener identifier. Registering an identifier that is
        already present under the same name is a no-op.

        Raises:
            ValueError: callback does not take exactly one argument
        """
        _require_single_argument(callback)
        listener = EventListener.from_callback(event_name, callback, identifier, once)
        bucket = self._registry.setdefault(event_name, [])

        if any(existing.identifier == listener.identifier for existing in bucket):
            logger.warning(
                "Duplicate event listener ignored",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
        else:
            bucket.append(listener)
            logger.debug(
                "Event listener added",
                extra={"event_name": event_name, "listener_id": listener.identifier, "once": once},
            )
        return listener.identifier

    def unsubscribe(self, event_name: str, identifier: str) -> bool:
        """Drop one listener; False when it was not registered."""
        bucket = self._registry.get(event_name)
        if not bucket:
            return False
        kept = [listener for listener in bucket if listener.identifier != identifier]
        if len(kept) == len(bucket):
            return False
        if kept:
            self._registry[event_name] = kept
        else:
            del self._registry[event_name]
        return True

    def clear(self) -> None:
        dropped = self.get_listener_count()
        self._registry.clear()
        logger.info("Event listeners cleared", extra={"listener_count": dropped})

    def _take_listeners(self, event_name: str) -> List[EventListener]:
        exact = list(self._registry.get(event_name, ()))
        wildcard: List[EventListener] = []
        for pattern in list(self._registry):
            if not _pattern_matches(pattern, event_name):
                continue
            bucket = self._registry[pattern]
            if pattern != event_name:
                wildcard.extend(bucket)
            persistent = [listener for listener in bucket if not listener.once]
            if persistent:
                self._registry[pattern] = persistent
            else:
                del self._registry[pattern]
        return exact + wildcard

    async def _call(self, event_name: str, listener: EventListener, payload: EventPayload) -> Any:
        try:
            outcome = listener.callback(payload)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            self._failures[event_name] += 1
            logger.error(
                "Event listener raised",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            return None
        return outcome

    async def publish(self, event_name: str, data: EventPayload) -> List[Any]:
        """
        Deliver ``data`` to every matching listener.

        Returns one result per listener in delivery order, ``None`` for
        listeners that raised.
        """
        self._published[event_name] += 1
        listeners = self._take_listeners(event_name)
        logger.debug(
            "Publishing event",
            extra={"event_name": event_name, "listener_count": len(listeners)},
        )
        if not listeners:
            return []
        results = await asyncio.gather(
            *(self._call(event_name, listener, data) for listener in listeners)
        )
        return list(results)

    def get_listener_count(self, event_name: Optional[str] = None) -> int:
        """All listeners, or only those ``event_name`` would reach."""
        return sum(
            len(bucket)
            for pattern, bucket in self._registry.items()
            if event_name is None or _pattern_matches(pattern, event_name)
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        return {
            "total_events_published": sum(self._published.values()),
            "events_by_type": dict(self._published),
            "total_errors": sum(self._failures.values()),
            "errors_by_event": dict(self._failures),
            "total_listeners": self.get_listener_count(),
        }
