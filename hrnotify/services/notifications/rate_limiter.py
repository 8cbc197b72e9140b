from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable


logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


def min_interval_s(rate_limit_per_minute: int) -> float:
    # Spread the per-minute ceiling evenly instead of allowing bursts at the start of a window.
    if rate_limit_per_minute <= 0:
        raise ValueError("rate_limit_per_minute must be positive")
    return 60.0 / float(rate_limit_per_minute)


def wait_time(last_sent_at: float | None, now: float, rate_limit_per_minute: int) -> float:
    """Seconds to wait before the next dispatch; 0.0 when the spacing is already satisfied."""
    spacing = min_interval_s(rate_limit_per_minute)
    if last_sent_at is None:
        return 0.0
    elapsed = now - last_sent_at
    if elapsed >= spacing:
        return 0.0
    return spacing - max(0.0, elapsed)


class DispatchRateLimiter:
    def __init__(
        self,
        rate_limit_per_minute: int,
        *,
        time_provider: Callable[[], float] | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        # Allow injecting time and sleep for deterministic tests.
        self._rate_limit_per_minute = rate_limit_per_minute
        self._time_provider = time_provider or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_sent_at: float | None = None
        min_interval_s(rate_limit_per_minute)

    @property
    def last_sent_at(self) -> float | None:
        return self._last_sent_at

    async def acquire(self) -> float:
        # Stamp before the transport call so a slow or failing send cannot let the next one start early.
        delay = wait_time(self._last_sent_at, self._time_provider(), self._rate_limit_per_minute)
        if delay > 0:
            logger.debug("notification_rate_limited wait_s=%.3f", delay)
            await self._sleep(delay)
        self._last_sent_at = self._time_provider()
        return delay
