"""Steam Store API client.

Only used to detect Coming Soon / unreleased games.
Rate limit: ~200 requests per 5 minutes.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from catalog_seeder.models.game import ReleaseStatus, SteamStoreAppDetails
from catalog_seeder.models.http import FetchOptions
from catalog_seeder.services.fetch_service import ResilientFetcher
from catalog_seeder.utils.exceptions import SchemaValidationError
from catalog_seeder.utils.rate_limiter import RateLimiter

logger = structlog.get_logger()


class SteamStoreClient:
    """Steam Store ``appdetails`` client"""

    def __init__(
        self,
        base_url: str,
        fetcher: ResilientFetcher,
        rate_limiter: Optional[RateLimiter] = None,
        options: Optional[FetchOptions] = None,
        country: str = "us",
        language: str = "english",
    ):
        self.base_url = base_url.rstrip("/")
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter or RateLimiter(200, 0.66, name="steam_store")
        # Release status rarely changes
        self.options = options or FetchOptions(ttl_seconds=60 * 60)
        self.country = country
        self.language = language

    async def app_details(self, appid: int) -> SteamStoreAppDetails:
        """Store entry for one app

        The store answers ``{"<appid>": {"success": bool, "data": {...}}}``.

        Raises:
            FetchError: After retries are exhausted
            SchemaValidationError: If the entry is malformed
        """
        params = {"appids": appid, "cc": self.country, "l": self.language}
        data = await self.fetcher.fetch(
            f"{self.base_url}/appdetails",
            self.options.model_copy(update={"params": params}),
            rate_limiter=self.rate_limiter,
        )

        entry = data.get(str(appid)) if isinstance(data, dict) else None
        if entry is None:
            return SteamStoreAppDetails(success=False)

        try:
            return SteamStoreAppDetails.model_validate(entry)
        except ValidationError as e:
            raise SchemaValidationError(
                f"steam_store:appdetails:{appid}", e.errors(include_url=False)
            ) from e

    async def release_status(self, appid: int) -> Optional[ReleaseStatus]:
        """Release status, or None when the store has no release date for the app"""
        details = await self.app_details(appid)

        if not details.success or details.data is None:
            logger.debug("store_app_unavailable", appid=appid)
            return None

        release = details.data.release_date
        if release is None:
            return None

        return ReleaseStatus(coming_soon=release.coming_soon, date=release.date)
