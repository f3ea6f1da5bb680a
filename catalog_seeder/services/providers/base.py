from abc import ABC, abstractmethod
from typing import Any, Dict, List

import structlog
from pydantic import ValidationError

from catalog_seeder.models.game import SteamSpyListItem
from catalog_seeder.utils.exceptions import SchemaValidationError

logger = structlog.get_logger()


class CatalogSource(ABC):
    """Abstract base class for identifier collection sources

    Each source wraps one catalog query (a top list, a genre partition,
    the full app list, ...) and returns the app ids it contains.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name for logging and metrics"""
        pass

    @abstractmethod
    async def fetch_ids(self) -> List[int]:
        """Return the identifiers this source knows about, in source order

        Raises:
            FetchError: If the underlying API call fails after retries
            SchemaValidationError: If the payload is malformed
        """
        pass


def parse_list_response(source: str, data: Any) -> Dict[int, SteamSpyListItem]:
    """Validate a SteamSpy ``appid -> summary`` mapping.

    Individual malformed entries are skipped; a payload that is not a mapping
    at all raises SchemaValidationError.
    """
    if not isinstance(data, dict):
        raise SchemaValidationError(
            source, [{"msg": f"expected object, got {type(data).__name__}"}]
        )

    items: Dict[int, SteamSpyListItem] = {}
    for key, raw in data.items():
        try:
            appid = int(key)
        except (TypeError, ValueError):
            logger.debug("list_key_not_numeric", source=source, key=str(key)[:20])
            continue
        if appid <= 0:
            continue

        if isinstance(raw, dict):
            raw = {**raw, "appid": appid}
        else:
            raw = {"appid": appid}

        try:
            items[appid] = SteamSpyListItem.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "list_item_invalid", source=source, appid=appid, errors=e.error_count()
            )
            continue

    return items
