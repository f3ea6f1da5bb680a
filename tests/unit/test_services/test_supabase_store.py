"""Unit tests for the Supabase game store (client mocked)"""

import pytest
from unittest.mock import MagicMock, patch

from catalog_seeder.services.storage.supabase_store import SupabaseGameStore
from catalog_seeder.utils.exceptions import ConfigurationError, PersistenceError


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return SupabaseGameStore("https://x.supabase.co", "key", client=client)


def test_upsert_uses_conflict_key(store, client):
    rows = [{"appid": 1, "name": "A"}]

    store.upsert(rows)

    client.table.assert_called_once_with("steam_games")
    client.table.return_value.upsert.assert_called_once_with(rows, on_conflict="appid")
    client.table.return_value.upsert.return_value.execute.assert_called_once()


def test_upsert_empty_skips_client(store, client):
    store.upsert([])
    client.table.assert_not_called()


def test_upsert_failure_is_persistence_error(store, client):
    client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError(
        "duplicate key"
    )

    with pytest.raises(PersistenceError, match="duplicate key"):
        store.upsert([{"appid": 1}])


def test_count_is_exact(store, client):
    client.table.return_value.select.return_value.execute.return_value = MagicMock(
        count=1234
    )

    assert store.count() == 1234
    client.table.return_value.select.assert_called_once_with(
        "appid", count="exact", head=True
    )


def test_count_none_is_zero(store, client):
    client.table.return_value.select.return_value.execute.return_value = MagicMock(
        count=None
    )
    assert store.count() == 0


def test_missing_credentials():
    with pytest.raises(ConfigurationError):
        SupabaseGameStore("", "")


def test_creates_client_from_credentials():
    with patch(
        "catalog_seeder.services.storage.supabase_store.create_client"
    ) as create_client:
        store = SupabaseGameStore("https://x.supabase.co", "key", table="games_test")

    create_client.assert_called_once_with("https://x.supabase.co", "key")
    assert store.table == "games_test"
