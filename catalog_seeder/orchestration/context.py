"""Composition root for a seeding run.

Builds the cache, rate limiters, fetcher, catalog clients and store from
SeedSettings. Nothing here is a module-level singleton: every run gets its
own instances, and the context owns their lifecycle.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

import aiohttp
import structlog

from catalog_seeder.models.cache import CacheConfig
from catalog_seeder.models.config import SeedSettings
from catalog_seeder.models.http import FetchOptions
from catalog_seeder.orchestration.pipeline import SeedingPipeline
from catalog_seeder.services.batch_upserter import BatchUpserter
from catalog_seeder.services.cache_service import TTLCache
from catalog_seeder.services.checkpoint_service import CheckpointService
from catalog_seeder.services.detail_fetcher import DetailFetcher
from catalog_seeder.services.fetch_service import ResilientFetcher
from catalog_seeder.services.id_collector import IdCollector
from catalog_seeder.services.providers.base import CatalogSource
from catalog_seeder.services.providers.steam_store import SteamStoreClient
from catalog_seeder.services.providers.steam_web import (
    SteamWebCatalogSource,
    SteamWebClient,
)
from catalog_seeder.services.providers.steamspy import (
    SteamSpyClient,
    SteamSpyListSource,
)
from catalog_seeder.services.storage.base import GameStore
from catalog_seeder.services.storage.supabase_store import SupabaseGameStore
from catalog_seeder.utils.rate_limiter import RateLimiter

logger = structlog.get_logger()


@dataclass
class SeederContext:
    """Services shared by one seeding run."""

    settings: SeedSettings
    cache: TTLCache
    fetcher: ResilientFetcher
    steamspy: SteamSpyClient
    steam_web: SteamWebClient
    steam_store: SteamStoreClient
    checkpoints: CheckpointService
    store: Optional[GameStore] = None
    limiters: List[RateLimiter] = field(default_factory=list)

    def build_sources(self) -> List[CatalogSource]:
        """Collection sources, cheapest first, SteamSpy ``all`` last."""
        sources: List[CatalogSource] = []
        config = self.settings.sources

        for request in config.top_lists:
            sources.append(SteamSpyListSource(self.steamspy, "top", request))
        for genre in config.genres:
            sources.append(SteamSpyListSource(self.steamspy, "genre", genre))
        for tag in config.tags:
            sources.append(SteamSpyListSource(self.steamspy, "tag", tag))
        if config.include_web_catalog:
            sources.append(SteamWebCatalogSource(self.steam_web))
        if config.include_steamspy_all:
            sources.append(SteamSpyListSource(self.steamspy, "all"))

        return sources

    def create_pipeline(
        self, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> SeedingPipeline:
        if self.store is None:
            raise ValueError("A GameStore is required to run the pipeline")

        settings = self.settings
        collector = IdCollector(
            self.build_sources(),
            target=settings.seed_limit,
            politeness_delay_seconds=settings.request_interval_seconds,
            sleep=sleep,
        )
        return SeedingPipeline(
            collector=collector,
            detail_fetcher=DetailFetcher(self.steamspy),
            upserter=BatchUpserter(self.store),
            checkpoints=self.checkpoints,
            batch_size=settings.batch_size,
            request_interval_seconds=settings.request_interval_seconds,
            concurrency=settings.concurrency,
            sleep=sleep,
        )

    async def close(self) -> None:
        await self.fetcher.close()
        stats = self.cache.get_stats()
        logger.debug(
            "context_closed",
            cache_hits=stats.hits,
            cache_misses=stats.misses,
            fetch_attempts=self.fetcher.stats.total_attempts,
            fetch_retries=self.fetcher.stats.total_retries,
            rate_limit_wait_seconds=round(
                sum(limiter.total_wait_seconds for limiter in self.limiters), 3
            ),
        )


def create_context(
    settings: SeedSettings,
    store: Optional[GameStore] = None,
    session: Optional[aiohttp.ClientSession] = None,
    connect_store: bool = True,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> SeederContext:
    """Construct every service for a run from settings.

    Args:
        settings: Validated seeder settings
        store: Store to use instead of Supabase
        session: aiohttp session to share with the fetcher
        connect_store: Build a SupabaseGameStore when ``store`` is None
        sleep: Awaitable sleep used for retry backoff
    """
    http = settings.http
    limits = settings.rate_limits

    cache = TTLCache(
        CacheConfig(
            max_entries=http.cache_max_entries,
            default_ttl_seconds=http.cache_ttl_seconds,
        )
    )
    fetcher = ResilientFetcher(
        cache=cache, session=session, user_agent=http.user_agent, sleep=sleep
    )

    list_options = FetchOptions(
        retries=http.retries,
        retry_delay_seconds=http.retry_delay_seconds,
        ttl_seconds=http.cache_ttl_seconds,
        timeout_seconds=http.timeout_seconds,
    )
    detail_options = list_options.model_copy(
        update={"retry_delay_seconds": http.detail_retry_delay_seconds}
    )

    steamspy_limiter = RateLimiter(1, limits.steamspy_per_second, name="steamspy")
    steamspy_all_limiter = RateLimiter.per_minute(
        limits.steamspy_all_per_minute, name="steamspy_all"
    )
    steam_web_limiter = RateLimiter(1, limits.steam_web_per_second, name="steam_web")
    steam_store_limiter = RateLimiter(
        limits.steam_store_capacity, limits.steam_store_per_second, name="steam_store"
    )

    sources = settings.sources
    steamspy = SteamSpyClient(
        sources.steamspy_base,
        fetcher,
        rate_limiter=steamspy_limiter,
        all_rate_limiter=steamspy_all_limiter,
        list_options=list_options,
        detail_options=detail_options,
    )
    steam_web = SteamWebClient(
        sources.steam_web_api_base,
        fetcher,
        rate_limiter=steam_web_limiter,
        options=list_options,
    )
    steam_store = SteamStoreClient(
        sources.steam_store_base,
        fetcher,
        rate_limiter=steam_store_limiter,
        options=list_options.model_copy(update={"ttl_seconds": 60 * 60}),
    )

    if store is None and connect_store:
        store = SupabaseGameStore(
            settings.store.supabase_url or "",
            settings.store.supabase_key or "",
            table=settings.store.table,
        )

    return SeederContext(
        settings=settings,
        cache=cache,
        fetcher=fetcher,
        steamspy=steamspy,
        steam_web=steam_web,
        steam_store=steam_store,
        checkpoints=CheckpointService(settings.checkpoint_file),
        store=store,
        limiters=[
            steamspy_limiter,
            steamspy_all_limiter,
            steam_web_limiter,
            steam_store_limiter,
        ],
    )
