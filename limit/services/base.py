"""Shared plumbing for persisted limiter services."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from limit.core.config import settings
from limit.core.logging import get_log_context
from limit.core.storage import StorageBackend, get_storage
from limit.exceptions import InvalidConfigurationError
from limit.persistence import Codec, PersistentValue, create_value

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def validate_prefix(prefix: str) -> str:
    if not isinstance(prefix, str) or not prefix.strip():
        raise InvalidConfigurationError(
            "prefix", prefix, "prefix must be a non-empty string"
        )
    return prefix


def validate_positive_duration(field: str, value: timedelta) -> timedelta:
    if not isinstance(value, timedelta):
        raise InvalidConfigurationError(
            field, value, f"{field} must be a datetime.timedelta"
        )
    if value <= timedelta(0):
        raise InvalidConfigurationError(field, value, f"{field} must be positive")
    return value


def validate_positive_int(field: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfigurationError(field, value, f"{field} must be an integer")
    if value < 1:
        raise InvalidConfigurationError(field, value, f"{field} must be at least 1")
    return value


class LimitService:
    """Base class holding the prefix, storage, clock and lock of a service.

    Every state-mutating operation of a subclass runs under ``self._lock``.
    Reads are not locked.
    """

    limiter_name = "limit"

    def __init__(
        self,
        prefix: str,
        use_cache: Optional[bool] = None,
        storage: Optional[StorageBackend] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize the service.

        Args:
            prefix: Namespace for this instance's keys
            use_cache: Keep an in-memory copy of stored values
                (None = settings.use_cache)
            storage: Backend to persist into (None = global storage)
            clock: Returns the current time (defaults to UTC now)
        """
        self.prefix = validate_prefix(prefix)
        self.use_cache = settings.use_cache if use_cache is None else use_cache
        self._storage = storage if storage is not None else get_storage()
        self._clock = clock or utc_now
        self._lock = asyncio.Lock()

    def _value(self, suffix: str, codec: Codec) -> PersistentValue:
        return create_value(
            self._storage, f"{self.prefix}_{suffix}", codec, self.use_cache
        )

    def _now(self) -> datetime:
        return self._clock()

    def _log_context(self, operation: str, **extra) -> dict:
        return get_log_context(
            limiter=self.limiter_name,
            prefix=self.prefix,
            operation=operation,
            **extra,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.prefix!r})"
