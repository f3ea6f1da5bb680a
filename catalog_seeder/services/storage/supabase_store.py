"""Supabase-backed game store.

Writes go through PostgREST ``upsert`` with ``on_conflict=appid`` so
replaying a batch after a crash overwrites rather than duplicates.
"""

from typing import Any, Dict, List, Optional

import structlog
from supabase import Client, create_client

from catalog_seeder.services.storage.base import GameStore
from catalog_seeder.utils.exceptions import ConfigurationError, PersistenceError

logger = structlog.get_logger()


class SupabaseGameStore(GameStore):
    """GameStore over a Supabase table"""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "steam_games",
        client: Optional[Client] = None,
    ):
        if client is None:
            if not url or not key:
                raise ConfigurationError(
                    "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required"
                )
            client = create_client(url, key)
        self._client = client
        self.table = table

    def _table(self):
        return self._client.table(self.table)

    def upsert(self, rows: List[Dict[str, Any]], on_conflict: str = "appid") -> None:
        if not rows:
            return
        try:
            self._table().upsert(rows, on_conflict=on_conflict).execute()
        except Exception as e:
            raise PersistenceError(
                f"Upsert of {len(rows)} rows into {self.table} failed: {e}"
            ) from e
        logger.debug("store_upserted", table=self.table, rows=len(rows))

    def count(self) -> int:
        try:
            resp = self._table().select("appid", count="exact", head=True).execute()
        except Exception as e:
            raise PersistenceError(f"Count of {self.table} failed: {e}") from e
        return resp.count or 0
