"""
Logging for Habit Garden.

Queue-backed handlers are installed on import; use ``get_logger`` per
module and ``LogContext`` to stamp owner and operation fields.
"""

from src.core.logging.logger import (
    LogContext,
    get_log_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "LogContext",
    "get_log_context",
    "get_logger",
    "setup_logging",
    "shutdown_logging",
]
