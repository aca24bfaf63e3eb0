"""Persisted limiter services."""

from limit.services.cooldown import Cooldown
from limit.services.rate_limiter import RateLimiter

__all__ = ["Cooldown", "RateLimiter"]
