"""Persistent cooldowns and token bucket rate limiters.

Provides a single import point for the package:

- ``Cooldown``: fixed-duration cooldowns (e.g. daily rewards)
- ``RateLimiter``: token bucket limiter (e.g. 1000 actions per 15 minutes)

Example:
    >>> from datetime import timedelta
    >>> from limit import Cooldown, RateLimiter
    >>> cooldown = Cooldown("daily_reward", duration=timedelta(hours=24))
    >>> limiter = RateLimiter(
    ...     "api_calls", max_tokens=100, refill_duration=timedelta(minutes=15)
    ... )
"""

from limit.core.storage import (
    InMemoryStorage,
    RedisStorage,
    StorageBackend,
    get_storage,
    reset_storage,
)
from limit.exceptions import (
    InvalidConfigurationError,
    LimitError,
    SerializationError,
    StorageError,
)
from limit.models import RateLimiterStats
from limit.persistence import CachedValue, DirectValue, PersistentValue, create_value
from limit.services.cooldown import Cooldown
from limit.services.rate_limiter import RateLimiter

__all__ = [
    # Services
    "Cooldown",
    "RateLimiter",
    "RateLimiterStats",
    # Storage
    "StorageBackend",
    "InMemoryStorage",
    "RedisStorage",
    "get_storage",
    "reset_storage",
    # Persistent values
    "PersistentValue",
    "DirectValue",
    "CachedValue",
    "create_value",
    # Exceptions
    "LimitError",
    "InvalidConfigurationError",
    "StorageError",
    "SerializationError",
]
