"""
Common plumbing for garden services.

A service receives its configuration, an optional event bus and a logger
at construction. It reads config through ``get_config``, logs through
``log_operation``/``log_error`` and publishes through ``emit_event``,
which silently does nothing for a service built without a bus.

Services never open sessions; the store does.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional

from .exceptions import ValidationError

if TYPE_CHECKING:
    from logging import Logger

    from src.core.event.bus import EventBus


class BaseService:
    def __init__(self, config: Any, event_bus: Optional[EventBus], logger: Logger) -> None:
        self._config = config
        self._events = event_bus
        self.log = logger

    def get_config(self, key: str, default: Any = None, required: bool = False) -> Any:
        """
        Read ``key`` from the config object, falling back to ``default``.

        Raises:
            ValidationError: If required and neither config nor default has it
        """
        value = getattr(self._config, key, default)
        if value is None and required:
            raise ValidationError(key, f"configuration key {key} is not set")
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Publish ``data`` merged with the owner ``context``."""
        if self._events is None:
            return
        await self._events.publish(event_type, {**data, **(context or {})})

    def log_operation(self, operation: str, **fields: Any) -> None:
        self.log.info(operation, extra={"operation": operation, **fields})

    def log_error(self, operation: str, error: BaseException, **fields: Any) -> None:
        self.log.error(
            f"{operation} failed: {error}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                **fields,
            },
            exc_info=error,
        )
