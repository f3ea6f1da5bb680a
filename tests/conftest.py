"""Shared fakes for the seeder test suite.

No test touches the network, the real clock or Supabase: HTTP goes through
FakeSession, time through FakeClock/RecordingSleep and persistence through
InMemoryGameStore.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest
import structlog

from catalog_seeder.models.game import GameRecord
from catalog_seeder.services.providers.base import CatalogSource
from catalog_seeder.services.storage.base import GameStore
from catalog_seeder.utils.exceptions import PersistenceError


class FakeResponse:
    """Stand-in for an aiohttp response used as an async context manager"""

    def __init__(self, status: int = 200, body: Any = ""):
        self.status = status
        if isinstance(body, bytes):
            self._body = body
        elif isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = json.dumps(body).encode("utf-8")

    async def read(self) -> bytes:
        return self._body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeSession:
    """Replays queued responses (or exceptions) for ``session.get``

    With ``handler`` every call is answered by ``handler(url, params)``;
    otherwise ``responses`` is consumed in order.
    """

    def __init__(
        self,
        responses: Optional[List[Union[FakeResponse, Exception]]] = None,
        handler: Optional[Callable[[str, Dict[str, Any]], Any]] = None,
    ):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, params=None, headers=None):
        params = dict(params or {})
        self.calls.append({"url": url, "params": params, "headers": headers})
        if self.handler is not None:
            item = self.handler(url, params)
        else:
            item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep that records delays and optionally advances a FakeClock"""

    def __init__(self, clock: Optional[FakeClock] = None):
        self.calls: List[float] = []
        self.clock = clock

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


class InMemoryGameStore(GameStore):
    """Upsert-by-key map with optional injected failures"""

    def __init__(self, fail_on_calls: Sequence[int] = ()):
        self.rows: Dict[Any, Dict[str, Any]] = {}
        self.calls: List[List[Dict[str, Any]]] = []
        self.fail_on_calls = set(fail_on_calls)

    def upsert(self, rows: List[Dict[str, Any]], on_conflict: str = "appid") -> None:
        self.calls.append(list(rows))
        if len(self.calls) in self.fail_on_calls:
            raise PersistenceError("simulated store outage")
        for row in rows:
            self.rows[row[on_conflict]] = dict(row)

    def count(self) -> int:
        return len(self.rows)


class StaticSource(CatalogSource):
    """Collection source returning fixed ids, or raising ``error``"""

    def __init__(self, name: str, ids: Sequence[Any] = (), error: Optional[Exception] = None):
        self._name = name
        self.ids = list(ids)
        self.error = error
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def fetch_ids(self) -> List[int]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.ids)


class FakeDetailFetcher:
    """DetailFetcher double: ``outcomes`` maps appid to an exception to raise"""

    def __init__(self, outcomes: Optional[Dict[int, Exception]] = None):
        self.outcomes = outcomes or {}
        self.calls: List[int] = []

    async def fetch(self, appid: int) -> GameRecord:
        self.calls.append(appid)
        outcome = self.outcomes.get(appid)
        if outcome is not None:
            raise outcome
        return make_record(appid)


def make_record(appid: int, **overrides: Any) -> GameRecord:
    fields: Dict[str, Any] = {"appid": appid, "name": f"Game {appid}"}
    fields.update(overrides)
    return GameRecord(**fields)


def steamspy_details(appid: int, **overrides: Any) -> Dict[str, Any]:
    """A realistic SteamSpy appdetails payload"""
    payload: Dict[str, Any] = {
        "appid": appid,
        "name": f"Game {appid}",
        "developer": "Valve",
        "publisher": "Valve",
        "score_rank": "",
        "positive": 1200,
        "negative": 80,
        "userscore": 0,
        "owners": "20,000 .. 50,000",
        "average_forever": 310,
        "average_2weeks": 12,
        "median_forever": 95,
        "median_2weeks": 12,
        "price": "999",
        "initialprice": "1999",
        "discount": "50",
        "ccu": 42,
        "languages": "English, German",
        "genre": "Action, Indie",
        "tags": {"Action": 120, "Indie": 80, "Roguelike": 45},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def clocked_sleep(fake_clock):
    """Sleep that moves ``fake_clock`` forward"""
    return RecordingSleep(fake_clock)


@pytest.fixture
def memory_store():
    return InMemoryGameStore()


@pytest.fixture
def checkpoint_path(tmp_path):
    return tmp_path / ".seed-checkpoint.json"


# Factories exposed as fixtures so test modules need not import conftest
@pytest.fixture
def session_factory():
    return FakeSession


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def source_factory():
    return StaticSource


@pytest.fixture
def store_factory():
    return InMemoryGameStore


@pytest.fixture
def detail_fetcher_factory():
    return FakeDetailFetcher


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def details_payload():
    return steamspy_details


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop logging config bound to a captured stream once the test ends"""
    yield
    structlog.reset_defaults()
