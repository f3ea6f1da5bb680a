"""Two-stage, resumable seeding pipeline.

Stage ``collection`` builds the ordered identifier list; stage
``upserting`` walks it, fetching details and flushing batches to the store.
The checkpoint is written after collection and after every flush, and is
removed only when the whole run succeeds.

Usage:
    context = create_context(settings)
    pipeline = context.create_pipeline()
    result = await pipeline.run()
"""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Tuple

import structlog

from catalog_seeder.models.checkpoint import SeedCheckpoint, SeedStage
from catalog_seeder.models.game import GameRecord
from catalog_seeder.observability.context import stage_context
from catalog_seeder.observability.metrics import DETAILS_SKIPPED, PIPELINE_PROGRESS
from catalog_seeder.orchestration.result import SeedResult
from catalog_seeder.services.batch_upserter import BatchUpserter
from catalog_seeder.services.checkpoint_service import CheckpointService
from catalog_seeder.services.detail_fetcher import DetailFetcher
from catalog_seeder.services.id_collector import IdCollector
from catalog_seeder.utils.exceptions import (
    DetailNotFoundError,
    FetchError,
    SchemaValidationError,
    SeederError,
)

logger = structlog.get_logger()


def _skip_reason(error: SeederError) -> str:
    if isinstance(error, DetailNotFoundError):
        return "not_found"
    if isinstance(error, SchemaValidationError):
        return "invalid"
    if isinstance(error, FetchError):
        return "fetch_failed"
    return "error"


class SeedingPipeline:
    """Collects identifiers, then fetches and upserts their details.

    Attributes:
        batch_size: Successful records per store write
        request_interval_seconds: Pause after every identifier (or window)
        concurrency: Detail fetches issued together; 1 keeps strict sequence
    """

    def __init__(
        self,
        collector: IdCollector,
        detail_fetcher: DetailFetcher,
        upserter: BatchUpserter,
        checkpoints: CheckpointService,
        batch_size: int = 250,
        request_interval_seconds: float = 1.2,
        concurrency: int = 1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.collector = collector
        self.detail_fetcher = detail_fetcher
        self.upserter = upserter
        self.checkpoints = checkpoints
        self.batch_size = batch_size
        self.request_interval_seconds = request_interval_seconds
        self.concurrency = concurrency
        self._sleep = sleep
        self._clock = clock

    async def run(self) -> SeedResult:
        """Run both stages to completion.

        Returns:
            SeedResult with totals for this run

        Raises:
            Exception: Anything fatal; the last checkpoint stays on disk
        """
        started = self._clock()
        result = SeedResult()

        try:
            checkpoint = self.checkpoints.load()

            if checkpoint is not None and checkpoint.stage is SeedStage.UPSERTING:
                identifiers = list(checkpoint.identifiers)
                start = checkpoint.last_processed_index
                batches = checkpoint.batches_completed
                logger.info(
                    "upserting_resumed",
                    identifiers=len(identifiers),
                    last_processed_index=start,
                    batches_completed=batches,
                )
            else:
                with stage_context(SeedStage.COLLECTION):
                    identifiers = await self._collect(checkpoint)
                start = 0
                batches = 0

            result.collected = len(identifiers)
            result.resumed_from = start

            with stage_context(SeedStage.UPSERTING):
                await self._upsert(identifiers, start, batches, result)

            self.checkpoints.clear()

        except Exception as e:
            result.duration_seconds = self._clock() - started
            logger.error(
                "seeding_failed",
                error_type=type(e).__name__,
                error=str(e),
                **result.to_dict(),
            )
            raise

        result.duration_seconds = self._clock() - started
        logger.info("seeding_completed", **result.to_dict())
        return result

    async def _collect(self, checkpoint: Optional[SeedCheckpoint]) -> List[int]:
        resume_from = None
        if checkpoint is not None and checkpoint.stage is SeedStage.COLLECTION:
            resume_from = checkpoint.identifiers
        return await self.collector.collect(
            resume_from=resume_from, on_gathered=self._save_collection
        )

    def _save_collection(self, gathered: List[int]) -> None:
        # Persist the full list so a restart never re-queries the sources
        self.checkpoints.save(
            SeedCheckpoint(stage=SeedStage.COLLECTION, identifiers=gathered)
        )

    async def _fetch_one(self, appid: int) -> Tuple[int, Optional[GameRecord]]:
        try:
            return appid, await self.detail_fetcher.fetch(appid)
        except SeederError as e:
            reason = _skip_reason(e)
            DETAILS_SKIPPED.labels(reason=reason).inc()
            logger.info(
                "detail_skipped",
                appid=appid,
                reason=reason,
                error_type=type(e).__name__,
                error=str(e),
            )
            return appid, None

    async def _fetch_window(
        self, window: List[int]
    ) -> List[Tuple[int, Optional[GameRecord]]]:
        if len(window) == 1:
            return [await self._fetch_one(window[0])]
        # gather preserves argument order
        return list(await asyncio.gather(*(self._fetch_one(a) for a in window)))

    async def _upsert(
        self,
        identifiers: List[int],
        start: int,
        batches: int,
        result: SeedResult,
    ) -> None:
        total = len(identifiers)
        logger.info(
            "upserting_started",
            identifiers=total,
            start=start,
            batch_size=self.batch_size,
            concurrency=self.concurrency,
            estimated_seconds=round(
                (total - start) * self.request_interval_seconds / self.concurrency, 1
            ),
        )

        batch: List[GameRecord] = []
        index = start

        while index < total:
            window = identifiers[index : index + self.concurrency]
            fetched = await self._fetch_window(window)

            for offset, (_, record) in enumerate(fetched):
                i = index + offset
                result.processed += 1
                if record is None:
                    result.skipped += 1
                else:
                    batch.append(record)

                if len(batch) >= self.batch_size or i == total - 1:
                    batches += 1
                    outcome = await self.upserter.upsert(batch, batches)
                    result.seeded += outcome.succeeded
                    result.failed += outcome.failed
                    result.batches += 1
                    batch = []

                    self.checkpoints.save(
                        SeedCheckpoint(
                            stage=SeedStage.UPSERTING,
                            identifiers=identifiers,
                            last_processed_index=i + 1,
                            batches_completed=batches,
                        )
                    )
                    PIPELINE_PROGRESS.set(i + 1)
                    logger.info(
                        "seeding_progress",
                        position=i + 1,
                        total=total,
                        seeded=result.seeded,
                        failed=result.failed,
                        skipped=result.skipped,
                    )

            index += len(window)

            if self.request_interval_seconds > 0:
                await self._sleep(self.request_interval_seconds)
