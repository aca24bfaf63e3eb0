"""Tests for the storage abstraction layer."""

from unittest.mock import AsyncMock, Mock

import pytest
import redis

from limit.core.storage import (
    InMemoryStorage,
    RedisStorage,
    StorageBackend,
    get_storage,
    reset_storage,
)
from limit.exceptions import StorageError


class TestInMemoryStorage:
    """Tests for the InMemoryStorage implementation."""

    @pytest.mark.asyncio
    async def test_set_and_get(self):
        storage = InMemoryStorage()
        await storage.set("key1", b"value1")
        assert await storage.get("key1") == b"value1"

    @pytest.mark.asyncio
    async def test_get_nonexistent_key(self):
        storage = InMemoryStorage()
        assert await storage.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_delete_nonexistent_key(self):
        """Deleting nonexistent key does not raise error."""
        storage = InMemoryStorage()
        await storage.delete("nonexistent")

    @pytest.mark.asyncio
    async def test_exists_keys_and_clear(self):
        storage = InMemoryStorage()
        await storage.set("key1", b"1")
        await storage.set("key2", b"2")

        assert await storage.exists("key1") is True
        assert sorted(await storage.keys()) == ["key1", "key2"]

        await storage.clear()
        assert await storage.exists("key1") is False
        assert await storage.keys() == []


class TestRedisStorage:
    """Tests for RedisStorage with a mocked client."""

    @pytest.fixture
    def client(self):
        client = Mock()
        client.get = AsyncMock(return_value=b"3")
        client.set = AsyncMock()
        client.delete = AsyncMock()
        client.exists = AsyncMock(return_value=1)
        client.aclose = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_keys_are_prefixed(self, client):
        storage = RedisStorage(key_prefix="app:", client=client)

        assert await storage.get("a_cd_count") == b"3"
        await storage.set("a_cd_count", b"4")
        await storage.delete("a_cd_count")

        client.get.assert_awaited_once_with("app:a_cd_count")
        client.set.assert_awaited_once_with("app:a_cd_count", b"4")
        client.delete.assert_awaited_once_with("app:a_cd_count")

    @pytest.mark.asyncio
    async def test_exists(self, client):
        storage = RedisStorage(key_prefix="app:", client=client)
        assert await storage.exists("k") is True
        client.exists.return_value = 0
        assert await storage.exists("k") is False

    @pytest.mark.asyncio
    async def test_keys_strip_prefix(self, client):
        async def scan_iter(match):
            assert match == "app:*"
            for raw in (b"app:x_rate_tokens", b"app:x_rate_last_refill"):
                yield raw

        client.scan_iter = scan_iter
        storage = RedisStorage(key_prefix="app:", client=client)

        assert await storage.keys() == ["x_rate_tokens", "x_rate_last_refill"]

    @pytest.mark.asyncio
    async def test_redis_errors_become_storage_errors(self, client):
        client.get.side_effect = redis.ConnectionError("connection refused")
        storage = RedisStorage(key_prefix="app:", client=client)

        with pytest.raises(StorageError) as exc_info:
            await storage.get("k")

        assert exc_info.value.operation == "get"
        assert exc_info.value.key == "k"
        assert isinstance(exc_info.value.__cause__, redis.ConnectionError)

    @pytest.mark.asyncio
    async def test_timeout_on_set(self, client):
        client.set.side_effect = redis.TimeoutError("timed out")
        storage = RedisStorage(key_prefix="app:", client=client)

        with pytest.raises(StorageError):
            await storage.set("k", b"1")

    @pytest.mark.asyncio
    async def test_close(self, client):
        storage = RedisStorage(client=client)
        await storage.close()
        client.aclose.assert_awaited_once()
        assert storage._redis is None

    def test_default_prefix_from_settings(self):
        storage = RedisStorage()
        assert storage._key_prefix == "limit:"
        assert storage._full_key("k") == "limit:k"


class TestGetStorage:
    """Tests for the global storage singleton."""

    def test_defaults_to_memory(self):
        storage = get_storage()
        assert isinstance(storage, InMemoryStorage)
        assert isinstance(storage, StorageBackend)

    def test_returns_singleton(self):
        assert get_storage() is get_storage()

    def test_force_new(self):
        first = get_storage()
        assert get_storage(force_new=True) is not first

    def test_redis_backend(self):
        storage = get_storage(backend="redis", redis_url="redis://example:6379/1")
        assert isinstance(storage, RedisStorage)
        assert storage._redis_url == "redis://example:6379/1"

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            get_storage(backend="sqlite")

    def test_reset(self):
        first = get_storage()
        reset_storage()
        assert get_storage() is not first
