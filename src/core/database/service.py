"""
DatabaseService: the process-wide async engine and its sessions.

    await DatabaseService.initialize()
    async with DatabaseService.get_transaction() as session:
        ...  # committed on exit, rolled back on any exception

Engines
-------
- PostgreSQL (asyncpg): AsyncAdaptedQueuePool sized from Config, with a
  per-transaction ``statement_timeout``.
- SQLite (aiosqlite): NullPool. Write transactions open with
  ``BEGIN IMMEDIATE`` so the completion existence check and insert run as
  one serialized unit; two deferred writers could both read before either
  writes. Snapshot sessions from ``get_session()`` open with a plain
  deferred ``BEGIN`` and never wait on the write lock.

Testing always uses NullPool. Driver errors are propagated untouched;
the garden store translates them into domain errors.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, DBAPIError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from src.core.config.config import Config
from src.core.database.base import Base
from src.core.logging.logger import get_logger

logger = get_logger(__name__)

# Execution option marking connections that only read
SNAPSHOT_READ_OPTION = "garden_snapshot_read"


class DatabaseInitializationError(RuntimeError):
    """The engine could not be created from the configured URL."""


class DatabaseNotInitializedError(RuntimeError):
    """A session was requested before ``initialize()``."""


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": bool(Config.DATABASE_ECHO)}
    if url.startswith("sqlite") or Config.is_testing():
        options["poolclass"] = NullPool
    else:
        options.update(
            poolclass=AsyncAdaptedQueuePool,
            pool_size=int(Config.DATABASE_POOL_SIZE),
            max_overflow=int(Config.DATABASE_MAX_OVERFLOW),
            pool_recycle=int(Config.DATABASE_POOL_RECYCLE),
            pool_timeout=int(Config.DATABASE_POOL_TIMEOUT),
            pool_pre_ping=True,
        )
    return options


def _install_sqlite_begin(engine: AsyncEngine) -> None:
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(sync_engine, "begin")
    def _begin(conn: Any) -> None:
        if conn.get_execution_options().get(SNAPSHOT_READ_OPTION):
            conn.exec_driver_sql("BEGIN")
        else:
            conn.exec_driver_sql("BEGIN IMMEDIATE")


class DatabaseService:
    """Class-level holder of the engine; all methods are classmethods."""

    _engine: Optional[AsyncEngine] = None
    _sessions: Optional[async_sessionmaker[AsyncSession]] = None
    _readers: Optional[async_sessionmaker[AsyncSession]] = None
    _dialect: Optional[str] = None
    _init_lock: Optional[asyncio.Lock] = None

    @classmethod
    def _lock(cls) -> asyncio.Lock:
        if cls._init_lock is None:
            cls._init_lock = asyncio.Lock()
        return cls._init_lock

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Create the engine. A second call is a no-op.

        Args:
            url: Overrides ``Config.DATABASE_URL`` (tests, scripts)

        Raises:
            DatabaseInitializationError: URL missing or unusable
        """
        async with cls._lock():
            if cls._engine is not None:
                return

            database_url = url or Config.DATABASE_URL
            if not database_url:
                raise DatabaseInitializationError("DATABASE_URL is not configured")

            try:
                dialect = make_url(database_url).get_backend_name()
                engine = create_async_engine(database_url, **_engine_options(database_url))
            except (ArgumentError, ImportError, ValueError) as exc:
                logger.error(
                    "Database engine creation failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                raise DatabaseInitializationError(f"Cannot create engine: {exc}") from exc

            if dialect == "sqlite":
                _install_sqlite_begin(engine)

            cls._engine = engine
            cls._dialect = dialect
            cls._sessions = async_sessionmaker(engine, expire_on_commit=False)
            cls._readers = async_sessionmaker(
                engine.execution_options(**{SNAPSHOT_READ_OPTION: True}),
                expire_on_commit=False,
            )
            logger.info(
                "Database initialized",
                extra={"dialect": dialect, "pool": type(engine.pool).__name__},
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call when not initialized."""
        async with cls._lock():
            engine, cls._engine = cls._engine, None
            cls._sessions = cls._readers = None
            cls._dialect = None
            if engine is not None:
                await engine.dispose()
                logger.info("Database engine disposed")

    @classmethod
    async def create_schema(cls) -> None:
        """Create any missing garden tables."""
        engine = cls._require_engine()
        import src.database.models  # noqa: F401  (registers the mappers)

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    @classmethod
    async def health_check(cls) -> bool:
        """``SELECT 1``; False on any driver error or when uninitialized."""
        if cls._engine is None:
            logger.warning("Health check before database initialization")
            return False
        started = time.perf_counter()
        try:
            reader = cls._engine.execution_options(**{SNAPSHOT_READ_OPTION: True})
            async with reader.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (DBAPIError, OSError) as exc:
            logger.warning("Database health check failed", extra={"error": str(exc)})
            return False
        logger.debug(
            "Database healthy",
            extra={"duration_ms": round((time.perf_counter() - started) * 1000, 2)},
        )
        return True

    @classmethod
    def _require_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService.initialize() must run before database access"
            )
        return cls._engine

    @classmethod
    def _factory(cls, read_only: bool = False) -> async_sessionmaker[AsyncSession]:
        cls._require_engine()
        factory = cls._readers if read_only else cls._sessions
        assert factory is not None
        return factory

    @classmethod
    async def _prepare(cls, session: AsyncSession) -> None:
        if cls._dialect == "postgresql":
            timeout = int(Config.DATABASE_STATEMENT_TIMEOUT_MS)
            await session.execute(text(f"SET LOCAL statement_timeout = {timeout}"))

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """Session for snapshot reads; nothing is committed."""
        async with cls._factory(read_only=True)() as session:
            await cls._prepare(session)
            yield session

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in one transaction.

        Commits when the block exits normally; rolls back and re-raises on
        any exception.
        """
        started = time.perf_counter()
        async with cls._factory()() as session:
            try:
                await cls._prepare(session)
                yield session
                await session.commit()
            except BaseException as exc:
                await session.rollback()
                level = logger.error if isinstance(exc, DBAPIError) else logger.debug
                level(
                    "Transaction rolled back",
                    extra={
                        "error_type": type(exc).__name__,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                )
                raise
