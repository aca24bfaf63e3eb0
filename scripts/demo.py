#!/usr/bin/env python3
"""Demonstrate Cooldown and RateLimiter against the configured storage.

Usage:
    python scripts/demo.py
    LIMIT_STORAGE_BACKEND=redis python scripts/demo.py
"""

import asyncio
from datetime import timedelta

from limit import Cooldown, RateLimiter, get_storage
from limit.core.logging import get_logger, setup_logging

logger = get_logger("limit.demo")


async def main() -> None:
    setup_logging()
    storage = get_storage()

    cooldown = Cooldown("daily_reward", duration=timedelta(seconds=10), storage=storage)
    if await cooldown.try_activate():
        logger.info("Cooldown activated, reward claimed")
    else:
        logger.info(f"Cooldown active, wait {await cooldown.seconds_remaining()} seconds")

    limiter = RateLimiter(
        "api_calls", max_tokens=5, refill_duration=timedelta(seconds=30), storage=storage
    )
    for i in range(1, 8):
        if await limiter.try_consume():
            logger.info(f"API call {i} allowed")
        else:
            wait = await limiter.time_until_next_token()
            logger.info(f"API call {i} blocked, retry in {wait.total_seconds():.1f}s")

    logger.info(str(await limiter.debug_stats()))
    await storage.close()


if __name__ == "__main__":
    asyncio.run(main())
