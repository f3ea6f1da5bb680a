"""Batch persistence of normalized game records."""

import asyncio
from dataclasses import dataclass
from typing import Sequence

import structlog

from catalog_seeder.models.game import GameRecord
from catalog_seeder.observability.metrics import BATCH_UPSERT_DURATION, RECORDS_UPSERTED
from catalog_seeder.services.storage.base import GameStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class UpsertOutcome:
    succeeded: int = 0
    failed: int = 0


class BatchUpserter:
    """Writes a batch of records to the store in a single upsert.

    A failed batch is reported, not raised: the whole batch counts as
    failed and the run continues with the next one.
    """

    def __init__(self, store: GameStore, on_conflict: str = "appid"):
        self.store = store
        self.on_conflict = on_conflict

    async def upsert(
        self, records: Sequence[GameRecord], batch_number: int = 0
    ) -> UpsertOutcome:
        if not records:
            return UpsertOutcome()

        rows = [record.to_row() for record in records]

        try:
            with BATCH_UPSERT_DURATION.time():
                await asyncio.to_thread(self.store.upsert, rows, self.on_conflict)
        except Exception as e:
            RECORDS_UPSERTED.labels(status="failed").inc(len(rows))
            logger.error(
                "batch_upsert_failed",
                batch=batch_number,
                records=len(rows),
                error_type=type(e).__name__,
                error=str(e),
            )
            return UpsertOutcome(succeeded=0, failed=len(rows))

        RECORDS_UPSERTED.labels(status="success").inc(len(rows))
        logger.info("batch_upserted", batch=batch_number, records=len(rows))
        return UpsertOutcome(succeeded=len(rows), failed=0)
