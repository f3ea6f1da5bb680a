"""Multi-source identifier collection.

No single catalog source is both fast and complete: the curated lists are
cheap but narrow, the full dumps are complete but slow and heavily rate
limited. Sources are queried in order, cheapest first, and merged into one
deduplicated list that keeps first-seen order.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

import structlog

from catalog_seeder.observability.metrics import IDS_COLLECTED, SOURCE_FAILURES
from catalog_seeder.services.providers.base import CatalogSource

logger = structlog.get_logger()


def merge_identifiers(target: dict, ids: Iterable) -> int:
    """Merge ``ids`` into the ordered set ``target``.

    Non-integer and non-positive values are dropped.

    Returns:
        Number of identifiers that were new
    """
    added = 0
    for raw in ids:
        if isinstance(raw, bool):
            continue
        try:
            appid = int(raw)
        except (TypeError, ValueError):
            continue
        if appid <= 0 or appid in target:
            continue
        target[appid] = None
        added += 1
    return added


class IdCollector:
    """Collects a deduplicated, ordered identifier list from many sources"""

    def __init__(
        self,
        sources: Sequence[CatalogSource],
        target: int,
        politeness_delay_seconds: float = 1.2,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if target < 1:
            raise ValueError("target must be at least 1")
        self.sources = list(sources)
        self.target = target
        self.politeness_delay_seconds = politeness_delay_seconds
        self._sleep = sleep

    async def gather(self) -> List[int]:
        """Query every source and merge the results.

        A failing source is logged and contributes nothing.

        Returns:
            All unique identifiers in first-seen order (not truncated)
        """
        logger.info(
            "collection_started", sources=len(self.sources), target=self.target
        )
        collected: dict = {}

        for source in self.sources:
            try:
                ids = await source.fetch_ids()
            except Exception as e:
                SOURCE_FAILURES.labels(source=source.name).inc()
                logger.warning(
                    "source_failed",
                    source=source.name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
            else:
                added = merge_identifiers(collected, ids)
                IDS_COLLECTED.labels(source=source.name).inc(len(ids))
                logger.info(
                    "source_collected",
                    source=source.name,
                    items=len(ids),
                    new_unique=added,
                    total=len(collected),
                )

            if self.politeness_delay_seconds > 0:
                await self._sleep(self.politeness_delay_seconds)

        logger.info("collection_finished", unique=len(collected))
        return list(collected)

    def finalize(self, identifiers: Sequence[int]) -> List[int]:
        """Deduplicate, freeze order and truncate to the target size.

        A shortfall is a warning, not an error.
        """
        unique: dict = {}
        merge_identifiers(unique, identifiers)
        selected = list(unique)[: self.target]

        if len(selected) < self.target:
            logger.warning(
                "identifier_shortfall",
                requested=self.target,
                available=len(selected),
            )

        logger.info(
            "identifiers_selected", before_slice=len(unique), after_slice=len(selected)
        )
        return selected

    async def collect(
        self,
        resume_from: Optional[Sequence[int]] = None,
        on_gathered: Optional[Callable[[List[int]], None]] = None,
    ) -> List[int]:
        """Collect identifiers, or reuse a previously collected list.

        Args:
            resume_from: Identifiers from a collection-stage checkpoint;
                sources are not queried when given
            on_gathered: Called with the merged, untruncated list before
                ``finalize``, e.g. to checkpoint it

        Returns:
            Ordered unique identifiers truncated to the target
        """
        if resume_from is not None:
            logger.info("collection_resumed", identifiers=len(resume_from))
            gathered = list(resume_from)
        else:
            gathered = await self.gather()

        if on_gathered is not None:
            on_gathered(gathered)
        return self.finalize(gathered)
