import asyncio
import time
from typing import Awaitable, Callable

import structlog

from catalog_seeder.observability.metrics import RATE_LIMIT_WAIT_SECONDS

logger = structlog.get_logger()


class RateLimiter:
    """Token bucket rate limiter for external API governance"""

    def __init__(
        self,
        capacity: int,
        refill_rate: float,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if capacity <= 0:
            raise ValueError("RateLimiter capacity must be positive")
        if refill_rate <= 0:
            raise ValueError("RateLimiter refill_rate must be positive")

        self.name = name
        self.capacity = float(capacity)
        self.refill_rate = refill_rate
        self.tokens = float(capacity)
        self._clock = clock
        self._sleep = sleep
        self.last_refill = clock()
        self.total_wait_seconds = 0.0
        self._lock = asyncio.Lock()

    @classmethod
    def per_minute(cls, requests_per_minute: float, burst: int = 1, **kwargs) -> "RateLimiter":
        """Build a limiter from a requests-per-minute budget"""
        return cls(capacity=burst, refill_rate=requests_per_minute / 60.0, **kwargs)

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self.last_refill)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary"""
        async with self._lock:
            # 1. Update tokens
            self._refill()

            # 2. Fast path
            if self.tokens >= 1:
                self.tokens -= 1
                return

            # 3. Wait for the deficit, then refill and debit
            wait_time = (1 - self.tokens) / self.refill_rate
            logger.debug("rate_limit_wait", limiter=self.name, wait_seconds=wait_time)
            self.total_wait_seconds += wait_time
            RATE_LIMIT_WAIT_SECONDS.labels(limiter=self.name).inc(wait_time)
            await self._sleep(wait_time)

            self._refill()
            self.tokens = max(0.0, self.tokens - 1)
