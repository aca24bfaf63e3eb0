"""Storage abstraction layer for persisted limiter state.

Provides a pluggable key-value backend with in-memory and Redis
implementations. Values are opaque bytes; typing lives in
``limit.persistence``.
"""

from abc import ABC, abstractmethod
import asyncio

import redis
import redis.asyncio as aioredis

from limit.core.config import settings
from limit.core.logging import get_log_context, get_logger
from limit.exceptions import StorageError

logger = get_logger(__name__)


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    All storage implementations must inherit from this class and implement
    the abstract methods.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Retrieve a value.

        Args:
            key: The key to look up.

        Returns:
            The stored value as bytes, or None if not found.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store a value.

        Args:
            key: The key.
            value: The value to store (as bytes).
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a value. Removing a missing key is a no-op.

        Args:
            key: The key to remove.
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a key exists.

        Args:
            key: The key to check.

        Returns:
            True if the key exists, False otherwise.
        """
        pass

    @abstractmethod
    async def keys(self) -> list[str]:
        """List all keys held by this backend."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove all entries held by this backend."""
        pass

    async def close(self) -> None:
        """Release any connection held by the backend."""
        return None


class InMemoryStorage(StorageBackend):
    """In-memory storage implementation.

    This is the default backend. It stores all data in a Python dictionary.

    Note: This storage is not shared between processes and data is lost
    when the process exits.
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            return self._data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._data[key] = value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        async with self._lock:
            return key in self._data

    async def keys(self) -> list[str]:
        async with self._lock:
            return list(self._data)

    async def clear(self) -> None:
        async with self._lock:
            self._data.clear()


class RedisStorage(StorageBackend):
    """Redis-based storage implementation.

    Keys are stored under ``key_prefix`` so several applications can share
    one Redis database. Values persist for as long as the Redis server keeps
    them; no TTL is applied.

    Example:
        >>> storage = RedisStorage("redis://localhost:6379/0")
        >>> await storage.set("daily_reward_cd_count", b"3")
    """

    def __init__(
        self,
        redis_url: str | None = None,
        key_prefix: str | None = None,
        client: object | None = None,
    ) -> None:
        """Initialize the Redis storage.

        Args:
            redis_url: Redis connection URL. Defaults to settings.redis_url.
            key_prefix: Namespace prepended to every key. Defaults to
                settings.redis_key_prefix.
            client: Optional pre-built ``redis.asyncio`` client.
        """
        self._redis_url = redis_url or settings.redis_url
        self._key_prefix = (
            key_prefix if key_prefix is not None else settings.redis_key_prefix
        )
        self._redis = client

    async def _get_client(self):
        """Get or create the Redis client connection."""
        if self._redis is None:
            self._redis = aioredis.from_url(self._redis_url)
        return self._redis

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _failure(self, operation: str, key: str, exc: Exception) -> StorageError:
        logger.error(
            f"Redis {operation} failed: {exc}",
            extra=get_log_context(limiter="storage", operation=operation, key=key),
        )
        return StorageError(operation, key, str(exc))

    async def get(self, key: str) -> bytes | None:
        client = await self._get_client()
        try:
            return await client.get(self._full_key(key))
        except redis.RedisError as e:
            raise self._failure("get", key, e) from e

    async def set(self, key: str, value: bytes) -> None:
        client = await self._get_client()
        try:
            await client.set(self._full_key(key), value)
        except redis.RedisError as e:
            raise self._failure("set", key, e) from e

    async def delete(self, key: str) -> None:
        client = await self._get_client()
        try:
            await client.delete(self._full_key(key))
        except redis.RedisError as e:
            raise self._failure("delete", key, e) from e

    async def exists(self, key: str) -> bool:
        client = await self._get_client()
        try:
            return await client.exists(self._full_key(key)) > 0
        except redis.RedisError as e:
            raise self._failure("exists", key, e) from e

    async def keys(self) -> list[str]:
        client = await self._get_client()
        result: list[str] = []
        try:
            async for raw in client.scan_iter(match=f"{self._key_prefix}*"):
                name = raw.decode("utf-8") if isinstance(raw, bytes) else raw
                result.append(name[len(self._key_prefix):])
        except redis.RedisError as e:
            raise self._failure("scan", self._key_prefix, e) from e
        return result

    async def clear(self) -> None:
        """Delete every key under this storage's prefix.

        Unlike FLUSHDB this leaves other applications' keys untouched.
        """
        for key in await self.keys():
            await self.delete(key)

    async def close(self) -> None:
        """Close the Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


# Global storage instance (singleton pattern)
_storage_instance: StorageBackend | None = None


def get_storage(
    backend: str | None = None,
    redis_url: str | None = None,
    force_new: bool = False,
) -> StorageBackend:
    """Get or create the global storage instance.

    Args:
        backend: Storage backend to use ('memory', 'redis', or None for
            settings.storage_backend).
        redis_url: Redis connection URL. If not provided, uses settings.redis_url.
        force_new: If True, create a new instance even if one exists.

    Returns:
        A StorageBackend instance (InMemoryStorage or RedisStorage).
    """
    global _storage_instance

    if _storage_instance is not None and not force_new:
        return _storage_instance

    name = backend or settings.storage_backend
    if name == "redis":
        _storage_instance = RedisStorage(redis_url or settings.redis_url)
        logger.info("Using Redis storage backend")
    elif name == "memory":
        _storage_instance = InMemoryStorage()
        logger.debug("Using in-memory storage backend")
    else:
        raise ValueError(f"Unknown storage backend: {name}")
    return _storage_instance


def reset_storage() -> None:
    """Reset the global storage instance.

    This is primarily useful for testing.
    """
    global _storage_instance
    _storage_instance = None
