"""Persisted fixed-duration cooldown with activation counting.

Stores:
- the last activation time (``<prefix>_cd_date_time``)
- the total activation count (``<prefix>_cd_count``)

Example:
    >>> cooldown = Cooldown("daily_reward", duration=timedelta(hours=24))
    >>> if await cooldown.try_activate():
    ...     grant_reward()
"""

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from limit.core.logging import get_logger
from limit.core.storage import StorageBackend
from limit.persistence import DATETIME, INT
from limit.services.base import Clock, LimitService, validate_positive_duration

logger = get_logger(__name__)


class Cooldown(LimitService):
    """A single-shot timer re-armed by explicit activation.

    The cooldown is active while ``now < last_activation + duration``.
    Expiry is computed on every read; nothing is written when it passes.
    """

    limiter_name = "cooldown"

    DATE_TIME_SUFFIX = "cd_date_time"
    COUNT_SUFFIX = "cd_count"

    def __init__(
        self,
        prefix: str,
        duration: timedelta,
        use_cache: Optional[bool] = None,
        storage: Optional[StorageBackend] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """Initialize the cooldown.

        Args:
            prefix: Namespace for this cooldown's keys
            duration: How long the cooldown lasts after each activation
            use_cache: Keep an in-memory copy of stored values
            storage: Backend to persist into (None = global storage)
            clock: Returns the current time (defaults to UTC now)

        Raises:
            InvalidConfigurationError: If prefix is empty or duration is not positive
        """
        super().__init__(prefix, use_cache=use_cache, storage=storage, clock=clock)
        self.duration = validate_positive_duration("duration", duration)
        self._last_activated = self._value(self.DATE_TIME_SUFFIX, DATETIME)
        self._activation_count = self._value(self.COUNT_SUFFIX, INT)

    async def is_cooldown_active(self) -> bool:
        """Return True if activated and the duration has not yet elapsed."""
        last = await self._last_activated.get()
        if last is None:
            return False
        return self._now() < last + self.duration

    async def is_expired(self) -> bool:
        """Return True if the cooldown has expired or was never activated."""
        return not await self.is_cooldown_active()

    async def activate_cooldown(self) -> None:
        """Start the cooldown now and increment the activation count."""
        async with self._lock:
            await self._activate_unlocked()

    async def _activate_unlocked(self) -> None:
        await self._last_activated.set(self._now())
        count = await self._activation_count.get_or_fallback(0)
        await self._activation_count.set(count + 1)
        logger.debug(
            "Cooldown activated",
            extra=self._log_context("activate_cooldown", activation_count=count + 1),
        )

    async def try_activate(self) -> bool:
        """Activate the cooldown only if it is not currently active.

        The check and the activation happen under one lock acquisition, so
        among concurrent callers on an inactive cooldown exactly one wins.

        Returns:
            True if the cooldown was activated, False if it was already active
        """
        async with self._lock:
            if await self.is_expired():
                await self._activate_unlocked()
                return True
        logger.debug(
            "Cooldown still active, activation declined",
            extra=self._log_context("try_activate"),
        )
        return False

    async def reset(self) -> None:
        """End the cooldown immediately. The activation count is kept."""
        async with self._lock:
            await self._last_activated.remove()
        logger.debug("Cooldown reset", extra=self._log_context("reset"))

    async def complete_reset(self) -> None:
        """End the cooldown and set the activation count back to zero."""
        async with self._lock:
            await self._last_activated.remove()
            await self._activation_count.set(0)
        logger.debug("Cooldown completely reset", extra=self._log_context("complete_reset"))

    async def time_remaining(self) -> timedelta:
        """Time until the cooldown ends, or zero if expired or never activated."""
        last = await self._last_activated.get()
        if last is None:
            return timedelta(0)
        end = last + self.duration
        now = self._now()
        return end - now if end > now else timedelta(0)

    async def seconds_remaining(self) -> int:
        """Remaining time truncated to whole seconds."""
        return int((await self.time_remaining()).total_seconds())

    async def percent_remaining(self) -> float:
        """Fraction of the duration still remaining, between 0.0 and 1.0."""
        remaining = await self.time_remaining()
        ratio = remaining / self.duration
        return min(1.0, max(0.0, ratio))

    async def get_last_activation_time(self) -> Optional[datetime]:
        return await self._last_activated.get()

    async def get_end_time(self) -> Optional[datetime]:
        """When the latest activation expires, or None if never activated."""
        last = await self._last_activated.get()
        if last is None:
            return None
        return last + self.duration

    async def when_expires(self) -> None:
        """Wait until the cooldown expires.

        The remaining time is read once; a concurrent reset or activation
        does not change how long this call sleeps. Cancel the awaiting task
        (or wrap in ``asyncio.wait_for``) to stop waiting early.
        """
        remaining = await self.time_remaining()
        if remaining > timedelta(0):
            await asyncio.sleep(remaining.total_seconds())

    async def get_activation_count(self) -> int:
        return await self._activation_count.get_or_fallback(0)

    async def remove_all(self) -> None:
        """Delete every persisted value of this cooldown, count included."""
        async with self._lock:
            await self._last_activated.remove()
            await self._activation_count.remove()
        logger.debug("Cooldown state removed", extra=self._log_context("remove_all"))

    async def any_state_exists(self) -> bool:
        """Return True if either persisted value is present in storage."""
        return (
            await self._last_activated.exists()
            or await self._activation_count.exists()
        )
