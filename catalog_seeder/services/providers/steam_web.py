"""Steam Web API client: the full app catalog (``ISteamApps/GetAppList``)."""

from typing import List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from catalog_seeder.models.http import FetchOptions
from catalog_seeder.services.fetch_service import ResilientFetcher
from catalog_seeder.services.providers.base import CatalogSource
from catalog_seeder.utils.exceptions import SchemaValidationError
from catalog_seeder.utils.rate_limiter import RateLimiter

logger = structlog.get_logger()


class _App(BaseModel):
    model_config = ConfigDict(extra="ignore")

    appid: int
    name: str = ""


class _AppList(BaseModel):
    apps: List[_App] = Field(default_factory=list)


class AppListResponse(BaseModel):
    """``GetAppList/v2`` payload"""

    applist: _AppList = Field(default_factory=_AppList)


class SteamWebClient:
    """Steam Web API client"""

    APP_LIST_PATH = "/ISteamApps/GetAppList/v2/"

    def __init__(
        self,
        base_url: str,
        fetcher: ResilientFetcher,
        rate_limiter: Optional[RateLimiter] = None,
        options: Optional[FetchOptions] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.fetcher = fetcher
        self.rate_limiter = rate_limiter or RateLimiter(1, 1.0, name="steam_web")
        self.options = options or FetchOptions()

    async def app_list(self) -> List[int]:
        """All positive app ids in catalog order

        Raises:
            FetchError: After retries are exhausted
            SchemaValidationError: If the payload is malformed
        """
        data = await self.fetcher.fetch(
            self.base_url + self.APP_LIST_PATH,
            self.options,
            rate_limiter=self.rate_limiter,
        )

        try:
            response = AppListResponse.model_validate(data)
        except ValidationError as e:
            raise SchemaValidationError(
                "steam_web:app_list", e.errors(include_url=False)
            ) from e

        apps = response.applist.apps
        appids = [app.appid for app in apps if app.appid > 0]
        logger.info(
            "steam_app_list_fetched", apps=len(apps), valid=len(appids)
        )
        return appids


class SteamWebCatalogSource(CatalogSource):
    """Collection source over the full Steam app list"""

    def __init__(self, client: SteamWebClient):
        self.client = client

    @property
    def name(self) -> str:
        return "steam_web:app_list"

    async def fetch_ids(self) -> List[int]:
        return await self.client.app_list()
