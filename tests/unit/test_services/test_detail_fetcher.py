"""Unit tests for DetailFetcher"""

from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock

from catalog_seeder.models.game import SteamSpyAppDetails
from catalog_seeder.services.detail_fetcher import DetailFetcher
from catalog_seeder.utils.exceptions import (
    DetailNotFoundError,
    RateLimitError,
    SchemaValidationError,
)

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def fetcher(client):
    return DetailFetcher(client, now=lambda: FIXED_NOW)


@pytest.mark.asyncio
async def test_builds_record(fetcher, client, details_payload):
    client.app_details = AsyncMock(
        return_value=SteamSpyAppDetails.model_validate(details_payload(42))
    )

    record = await fetcher.fetch(42)

    client.app_details.assert_awaited_once_with(42)
    assert record.appid == 42
    assert record.name == "Game 42"
    assert record.owners_midpoint == 35000
    assert record.price == 999
    assert record.updated_at == FIXED_NOW


@pytest.mark.asyncio
async def test_missing_details_raise_not_found(fetcher, client):
    client.app_details = AsyncMock(return_value=None)

    with pytest.raises(DetailNotFoundError) as exc_info:
        await fetcher.fetch(7)

    assert exc_info.value.appid == 7


@pytest.mark.asyncio
async def test_fetch_errors_propagate(fetcher, client):
    client.app_details = AsyncMock(side_effect=RateLimitError(url="http://x"))

    with pytest.raises(RateLimitError):
        await fetcher.fetch(7)


@pytest.mark.asyncio
async def test_schema_errors_propagate(fetcher, client):
    client.app_details = AsyncMock(side_effect=SchemaValidationError("steamspy", [{}]))

    with pytest.raises(SchemaValidationError):
        await fetcher.fetch(7)
