from abc import ABC, abstractmethod
from typing import Any, Dict, List


class GameStore(ABC):
    """Persistence boundary for seeded games

    Implementations own the table schema and write durability; the seeder
    only needs an idempotent bulk upsert keyed by appid and a row count.
    Methods are synchronous; async callers run them in a worker thread.
    """

    @abstractmethod
    def upsert(self, rows: List[Dict[str, Any]], on_conflict: str = "appid") -> None:
        """Insert or update ``rows`` in one call, last write wins on conflict

        Raises:
            PersistenceError: If the store rejects the write
        """
        pass

    @abstractmethod
    def count(self) -> int:
        """Exact number of rows in the table"""
        pass
