"""SteamSpy API client and collection sources.

Rate limit: ~1 request per second; ``request=all`` is limited to one call
per minute and gets its own limiter. No API key required.
"""

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError

from catalog_seeder.models.game import SteamSpyAppDetails, SteamSpyListItem
from catalog_seeder.models.http import FetchOptions
from catalog_seeder.services.fetch_service import ResilientFetcher
from catalog_seeder.services.providers.base import CatalogSource, parse_list_response
from catalog_seeder.utils.exceptions import SchemaValidationError
from catalog_seeder.utils.rate_limiter import RateLimiter

logger = structlog.get_logger()

TOP_LISTS = {"top100owned", "top100in2weeks", "top100forever"}


class SteamSpyClient:
    """Typed access to the SteamSpy endpoints used by the seeder"""

    def __init__(
        self,
        base_url: str,
        fetcher: ResilientFetcher,
        rate_limiter: Optional[RateLimiter] = None,
        all_rate_limiter: Optional[RateLimiter] = None,
        list_options: Optional[FetchOptions] = None,
        detail_options: Optional[FetchOptions] = None,
    ):
        self.base_url = base_url
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter or RateLimiter(1, 1.0, name="steamspy")
        self.all_rate_limiter = all_rate_limiter or RateLimiter.per_minute(
            1, name="steamspy_all"
        )
        self.list_options = list_options or FetchOptions()
        self.detail_options = detail_options or FetchOptions(retry_delay_seconds=0.5)

    async def _get(
        self,
        params: Dict[str, Any],
        options: FetchOptions,
        rate_limiter: RateLimiter,
    ) -> Any:
        return await self.fetcher.fetch(
            self.base_url,
            options.model_copy(update={"params": params}),
            rate_limiter=rate_limiter,
        )

    async def top(self, request: str) -> Dict[int, SteamSpyListItem]:
        """One of the top-100 lists (top100owned, top100in2weeks, top100forever)"""
        if request not in TOP_LISTS:
            raise ValueError(f"Unknown SteamSpy top list: {request}")
        data = await self._get({"request": request}, self.list_options, self.rate_limiter)
        return parse_list_response(f"steamspy:{request}", data)

    async def genre(self, genre: str) -> Dict[int, SteamSpyListItem]:
        """Games in a genre"""
        data = await self._get(
            {"request": "genre", "genre": genre}, self.list_options, self.rate_limiter
        )
        return parse_list_response(f"steamspy:genre:{genre}", data)

    async def tag(self, tag: str) -> Dict[int, SteamSpyListItem]:
        """Games carrying a user tag (e.g. "Early Access")"""
        data = await self._get(
            {"request": "tag", "tag": tag}, self.list_options, self.rate_limiter
        )
        return parse_list_response(f"steamspy:tag:{tag}", data)

    async def all(self) -> Dict[int, SteamSpyListItem]:
        """The full SteamSpy dump (slow, one call per minute)"""
        options = self.list_options.model_copy(update={"ttl_seconds": 5 * 60})
        data = await self._get({"request": "all"}, options, self.all_rate_limiter)
        return parse_list_response("steamspy:all", data)

    async def app_details(self, appid: int) -> Optional[SteamSpyAppDetails]:
        """Details for one app, or None when SteamSpy does not know it

        Raises:
            FetchError: After retries are exhausted
            SchemaValidationError: If the payload is malformed
        """
        data = await self._get(
            {"request": "appdetails", "appid": appid},
            self.detail_options,
            self.rate_limiter,
        )

        if not isinstance(data, dict) or not data.get("appid"):
            return None

        try:
            return SteamSpyAppDetails.model_validate(data)
        except ValidationError as e:
            raise SchemaValidationError(
                f"steamspy:appdetails:{appid}", e.errors(include_url=False)
            ) from e


class SteamSpyListSource(CatalogSource):
    """Collection source over one SteamSpy list request"""

    def __init__(self, client: SteamSpyClient, kind: str, value: Optional[str] = None):
        if kind not in {"top", "genre", "tag", "all"}:
            raise ValueError(f"Unknown SteamSpy list kind: {kind}")
        self.client = client
        self.kind = kind
        self.value = value

    @property
    def name(self) -> str:
        if self.kind == "all":
            return "steamspy:all"
        return f"steamspy:{self.kind}:{self.value}"

    async def fetch_ids(self) -> List[int]:
        if self.kind == "top":
            items = await self.client.top(self.value or "")
        elif self.kind == "genre":
            items = await self.client.genre(self.value or "")
        elif self.kind == "tag":
            items = await self.client.tag(self.value or "")
        else:
            items = await self.client.all()
        return list(items.keys())
