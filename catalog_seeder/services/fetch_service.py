"""Resilient HTTP fetch service.

Wraps a single GET in:
1. Response cache lookup (no network, no retry accounting on hit)
2. Optional per-source rate limiter (one token per network attempt)
3. Hard per-attempt timeout
4. Exponential backoff with jitter across retryable failures
5. Cache write of the parsed body on success

Every failure kind (timeout, 429, other non-2xx, transport, undecodable
body) is retryable and walks the same backoff ladder. On exhaustion the
last error is raised; its class tells the caller which kind it was.
"""

import asyncio
import json
import time
from typing import Any, Awaitable, Callable, Optional, Union

import aiohttp
import structlog

from catalog_seeder.models.http import FetchOptions
from catalog_seeder.observability.metrics import (
    FETCH_ATTEMPTS,
    FETCH_DURATION,
    FETCH_RETRIES,
)
from catalog_seeder.services.cache_service import TTLCache
from catalog_seeder.utils.exceptions import (
    FetchError,
    FetchTimeoutError,
    HTTPStatusError,
    RateLimitError,
    ResponseDecodeError,
    TransportError,
)
from catalog_seeder.utils.hash import request_fingerprint
from catalog_seeder.utils.rate_limiter import RateLimiter
from catalog_seeder.utils.retry import RetryContext, RetryHandler

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "catalog-seeder/0.4 (+https://github.com/catalog-seeder)"


class ResilientFetcher:
    """Fetch JSON from external catalog APIs with cache, retry and timeout.

    The fetcher owns one aiohttp session, created lazily on first use.
    Pass ``session`` to share an existing one (it is then not closed here).
    """

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        session: Optional[aiohttp.ClientSession] = None,
        user_agent: str = DEFAULT_USER_AGENT,
        jitter_factor: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.cache = cache
        self.user_agent = user_agent
        self.jitter_factor = jitter_factor
        self._sleep = sleep
        self._session = session
        self._owns_session = session is None
        self.stats = RetryContext()

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": self.user_agent}
            )
        return self._session

    async def close(self) -> None:
        """Close the owned HTTP session."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def fetch(
        self,
        url: str,
        options: Optional[FetchOptions] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> Any:
        """Fetch and decode a JSON document.

        Args:
            url: Endpoint URL (query string goes in ``options.params``)
            options: Retry, cache and timeout options
            rate_limiter: Limiter consulted before every network attempt

        Returns:
            Decoded JSON body (an empty body decodes to ``{}``)

        Raises:
            FetchError: Subclass describing the last failure after all attempts
        """
        options = options or FetchOptions()
        cache_key = request_fingerprint(url, options.params, options.headers)

        # 1. Cache
        if self.cache is not None and options.cache_enabled:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug("fetch_cache_hit", url=url)
                return cached

        # 2. Network with retry
        handler = RetryHandler(
            options.retry_config(jitter_factor=self.jitter_factor), sleep=self._sleep
        )

        def on_retry(attempt: int, error: Exception, delay: float) -> None:
            FETCH_RETRIES.inc()
            self.stats.record_retry(attempt, error, delay)

        async def attempt() -> Any:
            if rate_limiter is not None:
                await rate_limiter.acquire()
            self.stats.record_attempt()
            return await self._attempt(url, options)

        data = await handler.execute(
            attempt, retryable_exceptions={FetchError}, on_retry=on_retry
        )

        # 3. Cache write
        if self.cache is not None and options.cache_enabled and data is not None:
            self.cache.set(cache_key, data, ttl=options.ttl_seconds)

        return data

    async def _attempt(self, url: str, options: FetchOptions) -> Any:
        """One network attempt, classified into a FetchError on failure."""
        started = time.perf_counter()
        try:
            status, body = await asyncio.wait_for(
                self._request(url, options), timeout=options.timeout_seconds
            )
        except asyncio.TimeoutError:
            FETCH_ATTEMPTS.labels(outcome="timeout").inc()
            raise FetchTimeoutError(
                f"Request timed out after {options.timeout_seconds}s", url=url
            )
        except (aiohttp.ClientError, OSError) as e:
            FETCH_ATTEMPTS.labels(outcome="transport").inc()
            raise TransportError(f"{type(e).__name__}: {e}", url=url) from e
        finally:
            FETCH_DURATION.observe(time.perf_counter() - started)

        if status == 429:
            FETCH_ATTEMPTS.labels(outcome="rate_limited").inc()
            raise RateLimitError(url=url)

        if not 200 <= status < 300:
            FETCH_ATTEMPTS.labels(outcome="http_error").inc()
            raise HTTPStatusError(status, url=url)

        try:
            data = decode_body(body)
        except ValueError as e:
            FETCH_ATTEMPTS.labels(outcome="decode").inc()
            raise ResponseDecodeError(f"Invalid JSON body: {e}", url=url) from e

        FETCH_ATTEMPTS.labels(outcome="success").inc()
        return data

    async def _request(self, url: str, options: FetchOptions) -> tuple:
        session = self._get_session()
        async with session.get(
            url, params=options.params or None, headers=options.headers or None
        ) as response:
            body = await response.read()
            return response.status, body


def decode_body(body: Union[bytes, str]) -> Any:
    """Decode a JSON body; blank bodies decode to an empty dict.

    Raises:
        ValueError: Body is not UTF-8 (UnicodeDecodeError) or not JSON
    """
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    if not text or not text.strip():
        return {}
    return json.loads(text)
