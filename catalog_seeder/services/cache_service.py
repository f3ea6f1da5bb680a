"""
In-memory TTL cache for external API responses.

Bounded LRU: when full, the least recently *accessed* entry is evicted.
Entries expire lazily on lookup once their TTL has elapsed.
Thread-safe; shared by every fetch made during a run.
"""

import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Optional

import structlog

from catalog_seeder.models.cache import CacheConfig, CacheEntry, CacheStats
from catalog_seeder.observability.metrics import CACHE_OPERATIONS

logger = structlog.get_logger()


class TTLCache:
    """
    Bounded, time-expiring memoization of successful responses.

    Provides automatic expiration, statistics tracking, and size management.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            config: Cache configuration
            clock: Monotonic time source (seconds)
        """
        self.config = config or CacheConfig()
        self.enabled = self.config.enabled
        self.max_entries = self.config.max_entries
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

        if not self.enabled:
            logger.info("cache_disabled")

    def get(self, key: str) -> Optional[Any]:
        """
        Get a cached value.

        Args:
            key: Request fingerprint

        Returns:
            Cached value or None if absent or expired
        """
        if not self.enabled:
            return None

        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self._stats.misses += 1
                CACHE_OPERATIONS.labels(operation="miss").inc()
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._stats.misses += 1
                self._stats.expirations += 1
                CACHE_OPERATIONS.labels(operation="expired").inc()
                logger.debug("cache_expired", cache_key=key[:8])
                return None

            self._entries.move_to_end(key)
            self._stats.hits += 1
            CACHE_OPERATIONS.labels(operation="hit").inc()
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Insert or overwrite a value.

        Args:
            key: Request fingerprint
            value: Value to cache
            ttl: Time-to-live in seconds (default from config, <= 0 skips)
        """
        if not self.enabled:
            return

        ttl = self.config.default_ttl_seconds if ttl is None else ttl
        if ttl <= 0:
            return

        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                evicted_key, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                CACHE_OPERATIONS.labels(operation="evicted").inc()
                logger.debug("cache_evicted", cache_key=evicted_key[:8])

            self._entries[key] = CacheEntry(
                value=value, created_at=self._clock(), ttl=ttl
            )
            CACHE_OPERATIONS.labels(operation="set").inc()

    def delete(self, key: str) -> None:
        """Remove one entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove everything."""
        with self._lock:
            self._entries.clear()
        logger.info("cache_cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def get_stats(self) -> CacheStats:
        """
        Get cache statistics.

        Returns:
            CacheStats snapshot
        """
        with self._lock:
            return self._stats.model_copy(update={"size": len(self._entries)})
