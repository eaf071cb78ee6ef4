"""
Static configuration for Habit Garden.

Values come from the process environment (a ``.env`` file is loaded first
via python-dotenv) and are read once at import. ``Config.load()`` re-reads
them; ``Config.validate()`` is called by the entrypoint before anything
touches the database.

A malformed or out-of-range value never aborts startup: the default is
kept and the problem is recorded in ``Config.load_warnings``.

Variables
---------
DATABASE_URL                   SQLAlchemy async URL (local SQLite file)
DATABASE_POOL_SIZE             1..200, default 5
DATABASE_MAX_OVERFLOW          0..200, default 10
DATABASE_POOL_RECYCLE          seconds, >= 60
DATABASE_POOL_TIMEOUT          seconds, 1..600
DATABASE_STATEMENT_TIMEOUT_MS  PostgreSQL only, >= 100
DATABASE_ECHO                  echo SQL
PREFERENCE_BACKEND             "memory" or "redis"
REDIS_URL / REDIS_SOCKET_TIMEOUT
ENVIRONMENT                    development | testing | staging | production
LOG_LEVEL / LOG_JSON / LOG_COLORS / LOG_TO_FILE / LOGS_DIR
ACTIVITY_WINDOW_DAYS           rolling window W, 1..366
MAX_XP_REWARD                  ceiling for habit rewards
FOCAL_PREFERENCE_PREFIX        key prefix for the stored main plant
"""

import logging
import os
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

_TRUE = frozenset({"true", "yes", "1", "on"})
_FALSE = frozenset({"false", "no", "0", "off"})


class Environment(Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"

    @classmethod
    def from_string(cls, value: str) -> "Environment":
        """
        Unknown names fall back to development.

        >>> Environment.from_string("PRODUCTION") is Environment.PRODUCTION
        True
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            # logging is configured after Config, so use the root logger
            logging.warning("Unknown ENVIRONMENT %r, using development", value)
            return cls.DEVELOPMENT


def _parse_bool(raw: str) -> bool:
    token = raw.strip().lower()
    if token in _TRUE:
        return True
    if token in _FALSE:
        return False
    raise ValueError("expected true/false, yes/no, 1/0 or on/off")


def _int_between(low: Optional[int] = None, high: Optional[int] = None) -> Callable[[str], int]:
    def parse(raw: str) -> int:
        value = int(raw)
        if low is not None and value < low:
            raise ValueError(f"must be >= {low}")
        if high is not None and value > high:
            raise ValueError(f"must be <= {high}")
        return value

    return parse


# (attribute, parser, default); the attribute name is also the env var
_SETTINGS: Tuple[Tuple[str, Callable[[str], Any], Any], ...] = (
    ("DATABASE_URL", str, "sqlite+aiosqlite:///./garden.db"),
    ("DATABASE_POOL_SIZE", _int_between(1, 200), 5),
    ("DATABASE_MAX_OVERFLOW", _int_between(0, 200), 10),
    ("DATABASE_POOL_RECYCLE", _int_between(60), 1800),
    ("DATABASE_POOL_TIMEOUT", _int_between(1, 600), 30),
    ("DATABASE_STATEMENT_TIMEOUT_MS", _int_between(100), 30_000),
    ("DATABASE_ECHO", _parse_bool, False),
    ("PREFERENCE_BACKEND", lambda raw: raw.strip().lower(), "memory"),
    ("REDIS_URL", str, "redis://localhost:6379/0"),
    ("REDIS_SOCKET_TIMEOUT", _int_between(1, 60), 5),
    ("ENVIRONMENT", lambda raw: Environment.from_string(raw).value, "development"),
    ("LOG_LEVEL", lambda raw: raw.strip().upper(), "INFO"),
    ("LOG_JSON", _parse_bool, None),
    ("LOG_COLORS", _parse_bool, True),
    ("LOG_TO_FILE", _parse_bool, False),
    ("ACTIVITY_WINDOW_DAYS", _int_between(1, 366), 7),
    ("MAX_XP_REWARD", _int_between(0), 1000),
    ("FOCAL_PREFERENCE_PREFIX", str, "habit-garden:mainPlantId"),
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Config:
    """
    Class-level settings; read attributes directly.

    >>> Config.ACTIVITY_WINDOW_DAYS
    7
    """

    DATABASE_URL: str = "sqlite+aiosqlite:///./garden.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_RECYCLE: int = 1800
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30_000
    DATABASE_ECHO: bool = False

    PREFERENCE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_SOCKET_TIMEOUT: int = 5

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_COLORS: bool = True
    LOG_TO_FILE: bool = False
    PROJECT_ROOT = Path(__file__).resolve().parents[3]
    LOGS_DIR = PROJECT_ROOT / "logs"

    ACTIVITY_WINDOW_DAYS: int = 7
    MAX_XP_REWARD: int = 1000
    FOCAL_PREFERENCE_PREFIX: str = "habit-garden:mainPlantId"

    from_environment: List[str] = []
    load_warnings: Dict[str, str] = {}
    loaded_at: Optional[str] = None
    _validated: bool = False

    @classmethod
    def load(cls) -> None:
        """(Re)read every setting from the environment."""
        cls.from_environment = []
        cls.load_warnings = {}
        for name, parse, default in _SETTINGS:
            raw = os.getenv(name)
            if raw is None:
                setattr(cls, name, default)
                continue
            try:
                setattr(cls, name, parse(raw))
            except ValueError as exc:
                cls.load_warnings[name] = f"{raw!r} rejected ({exc}); using {default!r}"
                setattr(cls, name, default)
            else:
                cls.from_environment.append(name)

        logs_dir = os.getenv("LOGS_DIR")
        cls.LOGS_DIR = Path(logs_dir) if logs_dir else cls.PROJECT_ROOT / "logs"
        cls.loaded_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def validate(cls) -> None:
        """
        Reload and sanity-check settings once per process.

        Raises:
            ValueError: DATABASE_URL is empty
        """
        if cls._validated:
            return

        log = logging.getLogger(__name__)
        cls.load()

        if not cls.DATABASE_URL:
            raise ValueError("DATABASE_URL environment variable is required")
        if cls.is_production() and cls.DATABASE_URL.startswith("sqlite"):
            log.warning("Production environment is using SQLite")

        if cls.LOG_LEVEL not in _LOG_LEVELS:
            cls.load_warnings["LOG_LEVEL"] = f"{cls.LOG_LEVEL!r} unknown; using 'INFO'"
            cls.LOG_LEVEL = "INFO"
        if cls.PREFERENCE_BACKEND not in ("memory", "redis"):
            cls.load_warnings["PREFERENCE_BACKEND"] = (
                f"{cls.PREFERENCE_BACKEND!r} unknown; using 'memory'"
            )
            cls.PREFERENCE_BACKEND = "memory"

        for name, problem in cls.load_warnings.items():
            log.warning("Config %s: %s", name, problem)
        cls._validated = True

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == Environment.PRODUCTION.value

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == Environment.DEVELOPMENT.value

    @classmethod
    def is_testing(cls) -> bool:
        return cls.ENVIRONMENT == Environment.TESTING.value

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Settings safe to log; the database URL is reduced to its scheme."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "database_scheme": cls.DATABASE_URL.split(":", 1)[0],
            "database_pool_size": cls.DATABASE_POOL_SIZE,
            "preference_backend": cls.PREFERENCE_BACKEND,
            "activity_window_days": cls.ACTIVITY_WINDOW_DAYS,
            "from_environment": len(cls.from_environment),
            "warnings": sorted(cls.load_warnings),
        }


Config.load()
