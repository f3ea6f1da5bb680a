"""Retry Handler Utility

Implements exponential backoff with jitter for retrying transient failures.

Features:
- Configurable retry count and base delay
- Exponential backoff: delay = base * 2^attempt
- Additive jitter of up to jitter_factor * delay for request spreading
- Callback support for retry notifications
- Built-in structured logging for observability
"""

import asyncio
import random
from typing import TypeVar, Callable, Awaitable, Set, Type, Optional

import structlog

from catalog_seeder.models.http import RetryConfig

logger = structlog.get_logger(__name__)


T = TypeVar("T")


class RetryHandler:
    """Async retry handler with exponential backoff and jitter.

    All retryable exception types share one backoff ladder; the handler
    never distinguishes between them beyond the retryable check.
    """

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ) -> None:
        """Initialize retry handler with configuration.

        Args:
            config: Retry configuration with retries, base delay and jitter
            sleep: Coroutine used to wait between attempts
            rng: Random source for jitter (seedable in tests)
        """
        self.config = config
        self._sleep = sleep
        self._rng = rng or random.Random()

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay after a failed attempt.

        Args:
            attempt: Index of the attempt that just failed (0-indexed)

        Returns:
            Delay in seconds: base * 2^attempt plus up to jitter_factor of that
        """
        base_delay = self.config.base_delay_seconds * (2**attempt)
        jitter = self._rng.uniform(0, base_delay * self.config.jitter_factor)
        return base_delay + jitter

    async def execute(
        self,
        func: Callable[[], Awaitable[T]],
        retryable_exceptions: Set[Type[Exception]],
        on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    ) -> T:
        """Execute function with retry logic.

        Args:
            func: Async function to execute
            retryable_exceptions: Exception types that should trigger retry
            on_retry: Optional callback called before each retry with
                     (attempt_number, exception, delay_seconds)

        Returns:
            Result of successful function execution

        Raises:
            Exception: The last exception if all attempts are exhausted
        """
        max_attempts = self.config.max_attempts

        for attempt in range(max_attempts):
            try:
                return await func()
            except Exception as e:
                should_retry = any(
                    isinstance(e, exc_type) for exc_type in retryable_exceptions
                )

                if not should_retry:
                    raise

                if attempt + 1 >= max_attempts:
                    logger.warning(
                        "retries_exhausted",
                        attempts=max_attempts,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                    raise

                delay = self.calculate_delay(attempt)

                logger.warning(
                    "retry_attempt",
                    attempt=attempt + 1,
                    max_attempts=max_attempts,
                    error_type=type(e).__name__,
                    error_message=str(e),
                    delay_seconds=round(delay, 3),
                )

                if on_retry is not None:
                    on_retry(attempt + 1, e, delay)

                await self._sleep(delay)

        raise RuntimeError(  # pragma: no cover
            "Retry loop completed without result or exception"
        )


class RetryContext:
    """Tracks retry state across multiple fetches."""

    def __init__(self) -> None:
        self.total_attempts: int = 0
        self.total_retries: int = 0
        self.total_delay_seconds: float = 0.0
        self.last_error: Optional[Exception] = None

    def record_attempt(self) -> None:
        """Record a new attempt."""
        self.total_attempts += 1

    def record_retry(self, attempt: int, error: Exception, delay: float) -> None:
        """Record a retry; signature matches RetryHandler's on_retry callback."""
        self.total_retries += 1
        self.total_delay_seconds += delay
        self.last_error = error

    def reset(self) -> None:
        """Reset the context for reuse."""
        self.total_attempts = 0
        self.total_retries = 0
        self.total_delay_seconds = 0.0
        self.last_error = None
