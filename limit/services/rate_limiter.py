"""Persisted token bucket rate limiter.

Limits actions to ``max_tokens`` per ``refill_duration`` using a bucket that
refills continuously. Refill is computed lazily from the time elapsed since
the stored ``last_refill``; there is no background timer.

Stores:
- the token count as of the last write (``<prefix>_rate_tokens``)
- the time of the last write (``<prefix>_rate_last_refill``)

Example:
    >>> limiter = RateLimiter(
    ...     "chat_send", max_tokens=100, refill_duration=timedelta(minutes=15)
    ... )
    >>> if await limiter.try_consume():
    ...     await send(message)
"""

import inspect
import math
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, TypeVar, Union

from limit.core.logging import get_logger
from limit.core.storage import StorageBackend
from limit.models import RateLimiterStats
from limit.persistence import DATETIME, FLOAT
from limit.services.base import (
    Clock,
    LimitService,
    validate_positive_duration,
    validate_positive_int,
)

logger = get_logger(__name__)

T = TypeVar("T")


class RateLimiter(LimitService):
    """Token bucket with fractional refill and persisted state.

    Attributes:
        max_tokens: Maximum number of tokens the bucket holds
        refill_duration: Time to refill from empty to ``max_tokens``
    """

    limiter_name = "rate_limiter"

    TOKENS_SUFFIX = "rate_tokens"
    LAST_REFILL_SUFFIX = "rate_last_refill"

    def __init__(
        self,
        prefix: str,
        max_tokens: int,
        refill_duration: timedelta,
        use_cache: Optional[bool] = None,
        storage: Optional[StorageBackend] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            prefix: Namespace for this limiter's keys
            max_tokens: Maximum number of actions allowed in a burst
            refill_duration: Time over which the bucket fully refills
            use_cache: Keep an in-memory copy of stored values
            storage: Backend to persist into (None = global storage)
            clock: Returns the current time (defaults to UTC now)

        Raises:
            InvalidConfigurationError: If prefix is empty, max_tokens is not
                a positive integer or refill_duration is not positive
        """
        super().__init__(prefix, use_cache=use_cache, storage=storage, clock=clock)
        self.max_tokens = validate_positive_int("max_tokens", max_tokens)
        self.refill_duration = validate_positive_duration(
            "refill_duration", refill_duration
        )
        self._token_count = self._value(self.TOKENS_SUFFIX, FLOAT)
        self._last_refill = self._value(self.LAST_REFILL_SUFFIX, DATETIME)
        # Stands in for last_refill until the first write
        self._created_at = self._now()

    @property
    def refill_rate_per_ms(self) -> float:
        """Tokens accrued per millisecond."""
        return self.max_tokens / (self.refill_duration / timedelta(milliseconds=1))

    async def _load(self) -> tuple[float, datetime]:
        tokens = await self._token_count.get_or_fallback(float(self.max_tokens))
        last = await self._last_refill.get_or_fallback(self._created_at)
        return tokens, last

    def _refill(self, tokens: float, last: datetime, now: datetime) -> float:
        """Stored tokens plus refill accrued between ``last`` and ``now``, uncapped."""
        elapsed_ms = (now - last) / timedelta(milliseconds=1)
        return tokens + elapsed_ms * self.refill_rate_per_ms

    async def try_consume(self) -> bool:
        """Attempt to consume one token.

        The refilled count is committed together with ``last_refill = now``
        whether or not a token was available, so fractional accrual is kept
        across failed attempts.

        Returns:
            True if a token was consumed, False if rate limited
        """
        async with self._lock:
            now = self._now()
            tokens, last = await self._load()
            available = min(float(self.max_tokens), self._refill(tokens, last, now))

            if available >= 1:
                await self._token_count.set(max(0.0, available - 1))
                await self._last_refill.set(now)
                return True

            await self._token_count.set(max(0.0, available))
            await self._last_refill.set(now)

        logger.debug(
            "Rate limited",
            extra=self._log_context("try_consume", available=available),
        )
        return False

    async def run_if_allowed(
        self, action: Callable[[], Union[Awaitable[T], T]]
    ) -> Optional[T]:
        """Run ``action`` if a token can be consumed, otherwise return None.

        The token is debited before ``action`` runs. ``action`` may be a
        coroutine function or a plain callable.

        Example:
            >>> result = await limiter.run_if_allowed(lambda: api.send(text))
        """
        if not await self.try_consume():
            return None
        result = action()
        if inspect.isawaitable(result):
            result = await result
        return result

    async def get_available_tokens(self) -> float:
        """Tokens available now, including refill since the last write.

        The result is capped at ``max_tokens``. Nothing is persisted.
        """
        tokens, last = await self._load()
        return min(float(self.max_tokens), self._refill(tokens, last, self._now()))

    async def is_limited_now(self) -> bool:
        """Return True if less than one token is available."""
        return await self.get_available_tokens() < 1

    async def is_ready(self) -> bool:
        return not await self.is_limited_now()

    async def time_until_next_token(self) -> timedelta:
        """Time until one whole token is available, or zero if one already is."""
        available = await self.get_available_tokens()
        if available >= 1:
            return timedelta(0)
        ms_until_next = math.ceil((1 - available) / self.refill_rate_per_ms)
        return timedelta(milliseconds=ms_until_next)

    async def next_allowed_time(self) -> datetime:
        """When the next token will be available (now, if one already is)."""
        remaining = await self.time_until_next_token()
        return self._now() + remaining

    async def reset(self) -> None:
        """Refill the bucket to ``max_tokens`` as of now."""
        async with self._lock:
            await self._token_count.set(float(self.max_tokens))
            await self._last_refill.set(self._now())
        logger.debug("Rate limiter reset", extra=self._log_context("reset"))

    async def remove_all(self) -> None:
        """Delete every persisted value of this limiter."""
        async with self._lock:
            await self._token_count.remove()
            await self._last_refill.remove()
        logger.debug("Rate limiter state removed", extra=self._log_context("remove_all"))

    async def any_state_exists(self) -> bool:
        return await self._token_count.exists() or await self._last_refill.exists()

    async def debug_stats(self) -> RateLimiterStats:
        """Snapshot of stored and projected state, for debugging and logging."""
        now = self._now()
        tokens, last = await self._load()
        refilled = self._refill(tokens, last, now)
        return RateLimiterStats(
            tokens=tokens,
            last_refill=last,
            max_tokens=float(self.max_tokens),
            refill_duration=self.refill_duration,
            now=now,
            refill_rate_per_ms=self.refill_rate_per_ms,
            refilled_tokens=refilled,
            capped_token_count=min(float(self.max_tokens), refilled),
        )
