"""
Data models for the response cache.

Defines cache configuration, entries and statistics.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Cache configuration"""

    enabled: bool = True
    max_entries: int = Field(default=100, ge=1, le=100_000)
    default_ttl_seconds: float = Field(default=30 * 60, ge=0.0)


@dataclass
class CacheEntry:
    """A cached value with its creation time and time-to-live"""

    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl


class CacheStats(BaseModel):
    """Cache statistics"""

    size: int = 0
    hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0
