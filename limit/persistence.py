"""Typed persistent values on top of a storage backend.

A ``PersistentValue`` is one named cell in a ``StorageBackend``. Values are
serialized as JSON text; ``datetime`` values travel as ISO-8601 strings.

Two access strategies are provided:

- ``DirectValue`` round-trips the backend on every call, so separate
  processes sharing the backend observe each other's writes.
- ``CachedValue`` keeps the last read or written value in memory. It is
  faster but gives no cross-process consistency guarantee.

Use ``create_value`` to pick one from a ``use_cache`` flag.
"""

import json
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from limit.core.storage import StorageBackend
from limit.exceptions import SerializationError

T = TypeVar("T")


class Codec(ABC, Generic[T]):
    """Converts between Python values and stored bytes."""

    type_name: str = "value"

    def encode(self, value: T) -> bytes:
        return json.dumps(self.to_json(value)).encode("utf-8")

    def decode(self, key: str, data: bytes) -> T:
        try:
            raw = json.loads(data.decode("utf-8"))
            return self.from_json(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError, ValueError) as e:
            raise SerializationError(key, self.type_name, str(e)) from e

    @abstractmethod
    def to_json(self, value: T) -> Any:
        pass

    @abstractmethod
    def from_json(self, raw: Any) -> T:
        pass


class DateTimeCodec(Codec[datetime]):
    """ISO-8601 text with microseconds. Naive datetimes are treated as UTC."""

    type_name = "datetime"

    def to_json(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    def from_json(self, raw: Any) -> datetime:
        if not isinstance(raw, str):
            raise TypeError(f"expected ISO-8601 string, got {type(raw).__name__}")
        value = datetime.fromisoformat(raw)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


class IntCodec(Codec[int]):
    type_name = "int"

    def to_json(self, value: int) -> int:
        return int(value)

    def from_json(self, raw: Any) -> int:
        # bool is an int subclass; a stored true/false is not a counter
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise TypeError(f"expected integer, got {type(raw).__name__}")
        return raw


class FloatCodec(Codec[float]):
    type_name = "float"

    def to_json(self, value: float) -> float:
        return float(value)

    def from_json(self, raw: Any) -> float:
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise TypeError(f"expected number, got {type(raw).__name__}")
        return float(raw)


DATETIME = DateTimeCodec()
INT = IntCodec()
FLOAT = FloatCodec()


class PersistentValue(ABC, Generic[T]):
    """A typed, named storage cell.

    Attributes:
        key: The backend key this cell reads and writes.
    """

    def __init__(self, storage: StorageBackend, key: str, codec: Codec[T]) -> None:
        self._storage = storage
        self.key = key
        self._codec = codec

    @abstractmethod
    async def get(self) -> Optional[T]:
        """Return the stored value, or None if absent."""
        pass

    @abstractmethod
    async def set(self, value: T) -> None:
        pass

    @abstractmethod
    async def remove(self) -> None:
        pass

    async def get_or_fallback(self, fallback: T) -> T:
        """Return the stored value, or ``fallback`` if absent."""
        value = await self.get()
        return fallback if value is None else value

    async def exists(self) -> bool:
        """Check the backend itself, bypassing any in-memory copy."""
        return await self._storage.exists(self.key)

    async def _read(self) -> Optional[T]:
        data = await self._storage.get(self.key)
        if data is None:
            return None
        return self._codec.decode(self.key, data)

    async def _write(self, value: T) -> None:
        await self._storage.set(self.key, self._codec.encode(value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r})"


class DirectValue(PersistentValue[T]):
    """Reads and writes go straight to the backend."""

    async def get(self) -> Optional[T]:
        return await self._read()

    async def set(self, value: T) -> None:
        await self._write(value)

    async def remove(self) -> None:
        await self._storage.delete(self.key)


class CachedValue(PersistentValue[T]):
    """Keeps an in-memory copy after the first read or any write.

    Writes still go to the backend. Writes made by another process are not
    seen once the copy is loaded.
    """

    def __init__(self, storage: StorageBackend, key: str, codec: Codec[T]) -> None:
        super().__init__(storage, key, codec)
        self._loaded = False
        self._value: Optional[T] = None

    async def get(self) -> Optional[T]:
        if not self._loaded:
            self._value = await self._read()
            self._loaded = True
        return self._value

    async def set(self, value: T) -> None:
        await self._write(value)
        self._value = value
        self._loaded = True

    async def remove(self) -> None:
        await self._storage.delete(self.key)
        self._value = None
        self._loaded = True

    def invalidate(self) -> None:
        """Drop the in-memory copy so the next read hits the backend."""
        self._loaded = False
        self._value = None


def create_value(
    storage: StorageBackend, key: str, codec: Codec[T], use_cache: bool = False
) -> PersistentValue[T]:
    """Build a cell using the cached or direct access strategy."""
    if use_cache:
        return CachedValue(storage, key, codec)
    return DirectValue(storage, key, codec)
