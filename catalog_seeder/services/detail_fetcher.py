"""Per-identifier detail retrieval and normalization."""

from datetime import datetime, timezone
from typing import Callable

import structlog

from catalog_seeder.models.game import GameRecord, top_tags
from catalog_seeder.services.providers.steamspy import SteamSpyClient
from catalog_seeder.utils.exceptions import DetailNotFoundError

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DetailFetcher:
    """Fetches SteamSpy details for one app and builds a GameRecord."""

    def __init__(
        self,
        client: SteamSpyClient,
        now: Callable[[], datetime] = _utcnow,
    ):
        self.client = client
        self._now = now

    async def fetch(self, appid: int) -> GameRecord:
        """Fetch and normalize details for ``appid``.

        Raises:
            DetailNotFoundError: SteamSpy returned no record for the app
            SchemaValidationError: The payload was malformed
            FetchError: Retries were exhausted
        """
        details = await self.client.app_details(appid)
        if details is None:
            raise DetailNotFoundError(appid)

        record = GameRecord.from_details(details, updated_at=self._now())
        logger.debug(
            "detail_fetched",
            appid=appid,
            name=record.name,
            owners_midpoint=record.owners_midpoint,
            top_tags=top_tags(record.tags, 3),
        )
        return record
