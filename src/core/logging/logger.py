"""
Habit Garden logging.

Every record goes through one bounded queue; a listener thread drains it
into the console handler (and optionally a daily JSON file), so handler
I/O never runs on the event loop.

Records are stamped from the current ``LogContext``: owner identity,
operation and a short correlation id shared by every line of one
completion attempt. Fields passed explicitly via ``extra`` take
precedence over the context.

Output
------
- JSON lines when ``LOG_JSON`` is set (default in production)
- Plain or ANSI-colored text otherwise
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from typing import Any, Dict, List, Optional

from src.core.config.config import Config

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(correlation_id)s] %(name)s: %(message)s"
TIME_FORMAT = "%H:%M:%S"
QUEUE_SIZE = 10_000
DAILY_FILE = "habit_garden.jsonl"

CONTEXT_FIELDS = ("user_id", "garden_id", "operation", "correlation_id")

_context: ContextVar[Dict[str, Any]] = ContextVar("garden_log_context", default={})

_listener: Optional[QueueListener] = None
_handler: Optional[QueueHandler] = None
dropped_records = 0

# Attributes every LogRecord carries; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _level() -> int:
    level = logging.getLevelName(str(getattr(Config, "LOG_LEVEL", "INFO")).upper())
    return level if isinstance(level, int) else logging.INFO


def _json_enabled() -> bool:
    flag = getattr(Config, "LOG_JSON", None)
    return Config.is_production() if flag is None else bool(flag)


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto records that lack those fields."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _context.get()
        for field in CONTEXT_FIELDS:
            if getattr(record, field, None) is None:
                setattr(record, field, context.get(field, "-"))
        return True


class ColoredFormatter(logging.Formatter):
    LEVEL_COLORS = {
        logging.DEBUG: "\033[90m",
        logging.INFO: "\033[36m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().format(record)
        color = self.LEVEL_COLORS.get(record.levelno)
        return f"{color}{line}\033[0m" if color else line


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``extra`` fields are nested under "extra"."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, "-")
            if value != "-":
                payload[field] = value

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_FIELDS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class DroppingQueueHandler(QueueHandler):
    """Queue handler that drops records instead of blocking when full."""

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        global dropped_records
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            dropped_records += 1


def _build_handlers() -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    if _json_enabled():
        console.setFormatter(JSONFormatter())
    elif getattr(Config, "LOG_COLORS", True) and sys.stdout.isatty():
        console.setFormatter(ColoredFormatter(TEXT_FORMAT, TIME_FORMAT))
    else:
        console.setFormatter(logging.Formatter(TEXT_FORMAT, TIME_FORMAT))
    handlers: List[logging.Handler] = [console]

    if getattr(Config, "LOG_TO_FILE", False):
        logs_dir = Config.LOGS_DIR
        logs_dir.mkdir(parents=True, exist_ok=True)
        daily = TimedRotatingFileHandler(
            logs_dir / DAILY_FILE, when="midnight", backupCount=7, encoding="utf-8", utc=True
        )
        daily.setFormatter(JSONFormatter())
        handlers.append(daily)
    return handlers


def setup_logging() -> None:
    """Attach the queue handler to the root logger. Safe to call repeatedly."""
    global _listener, _handler
    if _handler is not None:
        return

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_SIZE)
    _listener = QueueListener(log_queue, *_build_handlers(), respect_handler_level=True)
    _listener.start()

    _handler = DroppingQueueHandler(log_queue)
    _handler.addFilter(ContextFilter())

    root = logging.getLogger()
    root.setLevel(_level())
    root.addHandler(_handler)

    for noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def shutdown_logging() -> None:
    """Flush the queue and detach the handler."""
    global _listener, _handler
    if _listener is not None:
        _listener.stop()
        _listener = None
    if _handler is not None:
        logging.getLogger().removeHandler(_handler)
        _handler.close()
        _handler = None


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind owner and operation fields to every record logged inside a block.

    >>> with LogContext(user_id="u-1", garden_id=4, operation="complete_habit"):
    ...     logger.info("Submitting completion")
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        garden_id: Optional[int] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        fields = {"user_id": user_id, "garden_id": garden_id, "operation": operation}
        self.context: Dict[str, Any] = {
            **_context.get(),
            **{key: value for key, value in fields.items() if value is not None},
            "correlation_id": correlation_id or uuid.uuid4().hex[:8],
        }
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> LogContext:
        self._token = _context.set(self.context)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *exc_info: Any) -> None:
        self.__exit__(*exc_info)


def get_log_context() -> Dict[str, Any]:
    return dict(_context.get())


setup_logging()
