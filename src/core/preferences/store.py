"""
Local preference storage for Habit Garden.

Purpose
-------
A small get/set key-value surface used to persist per-user preferences
(currently the focal plant pointer) independently of the garden tables,
so a preference survives even while the database is unreachable.

Backends
--------
- InMemoryPreferenceStore: process-local dict, used in development/tests
- RedisPreferenceStore: redis-py asyncio client, shared across processes

Failure Mode
------------
Backend failures are logged and re-raised as PreferenceUnavailableError;
callers decide whether a missing preference is tolerable.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from redis.asyncio.client import Redis as AsyncRedis  # type: ignore[misc]
from redis.exceptions import RedisError

from src.core.logging.logger import get_logger

logger = get_logger(__name__)


class PreferenceUnavailableError(Exception):
    """Raised when the preference backend cannot be reached."""

    def __init__(self, operation: str, key: str, reason: str) -> None:
        super().__init__(f"Preference {operation} failed for '{key}': {reason}")
        self.operation = operation
        self.key = key
        self.reason = reason


@runtime_checkable
class PreferenceStore(Protocol):
    """Async get/set of string preferences."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


class InMemoryPreferenceStore:
    """Dict-backed preference store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._values: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> Dict[str, str]:
        return dict(self._values)


class RedisPreferenceStore:
    """
    Redis-backed preference store.

    Parameters
    ----------
    client : AsyncRedis
        A redis asyncio client created with ``decode_responses=True``.
    """

    def __init__(self, client: AsyncRedis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: int = 5) -> "RedisPreferenceStore":
        client: AsyncRedis = AsyncRedis.from_url(
            url,
            socket_timeout=socket_timeout,
            encoding="utf-8",
            decode_responses=True,
            retry_on_timeout=False,
        )
        logger.info(
            "RedisPreferenceStore created",
            extra={
                "url_scheme": url.split("://")[0] if "://" in url else "unknown",
                "socket_timeout_seconds": socket_timeout,
            },
        )
        return cls(client)

    def _fail(self, operation: str, key: str, exc: RedisError) -> PreferenceUnavailableError:
        logger.error(
            f"Redis preference {operation} failed",
            extra={
                "key": key,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
            exc_info=True,
        )
        return PreferenceUnavailableError(operation, key, str(exc))

    async def get(self, key: str) -> Optional[str]:
        try:
            value: Any = await self._client.get(key)
        except RedisError as exc:
            raise self._fail("GET", key, exc) from exc

        logger.debug(
            "Redis preference GET",
            extra={"key": key, "found": value is not None},
        )
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value

    async def set(self, key: str, value: str) -> None:
        try:
            await self._client.set(key, value)
        except RedisError as exc:
            raise self._fail("SET", key, exc) from exc
        logger.debug("Redis preference SET", extra={"key": key})

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except RedisError as exc:
            raise self._fail("DEL", key, exc) from exc

    async def close(self) -> None:
        await self._client.aclose()


def create_preference_store(config: Any) -> PreferenceStore:
    """
    Build the preference store selected by ``config.PREFERENCE_BACKEND``.

    Unknown backends fall back to the in-memory store.
    """
    backend = str(getattr(config, "PREFERENCE_BACKEND", "memory")).lower()
    if backend == "redis":
        return RedisPreferenceStore.from_url(
            config.REDIS_URL,
            socket_timeout=getattr(config, "REDIS_SOCKET_TIMEOUT", 5),
        )

    if backend != "memory":
        logger.warning(
            "Unknown preference backend, using memory",
            extra={"backend": backend},
        )
    return InMemoryPreferenceStore()
