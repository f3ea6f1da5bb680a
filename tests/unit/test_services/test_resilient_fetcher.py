"""Unit tests for ResilientFetcher (cache, retry, timeout, error kinds)"""

import asyncio

import aiohttp
import pytest

from catalog_seeder.models.cache import CacheConfig
from catalog_seeder.models.http import FetchOptions
from catalog_seeder.services.cache_service import TTLCache
from catalog_seeder.services.fetch_service import ResilientFetcher, decode_body
from catalog_seeder.utils.exceptions import (
    FetchTimeoutError,
    HTTPStatusError,
    RateLimitError,
    ResponseDecodeError,
    TransportError,
)
from catalog_seeder.utils.rate_limiter import RateLimiter

URL = "https://steamspy.com/api.php"


@pytest.fixture
def cache():
    return TTLCache(CacheConfig(max_entries=10))


def make_fetcher(session, cache=None, sleep=None):
    return ResilientFetcher(cache=cache, session=session, sleep=sleep or asyncio.sleep)


def options(**kwargs):
    defaults = {"params": {"request": "appdetails", "appid": 42}}
    defaults.update(kwargs)
    return FetchOptions(**defaults)


@pytest.mark.asyncio
async def test_success_decodes_json(session_factory, response_factory, fake_sleep):
    session = session_factory([response_factory(200, {"appid": 42})])
    fetcher = make_fetcher(session, sleep=fake_sleep)

    data = await fetcher.fetch(URL, options())

    assert data == {"appid": 42}
    assert session.calls[0]["params"] == {"request": "appdetails", "appid": 42}


@pytest.mark.asyncio
async def test_429_twice_then_success(session_factory, response_factory, fake_sleep):
    session = session_factory(
        [
            response_factory(429, ""),
            response_factory(429, ""),
            response_factory(200, {"appid": 42, "name": "Answer"}),
        ]
    )
    fetcher = make_fetcher(session, sleep=fake_sleep)

    data = await fetcher.fetch(URL, options(retries=3))

    assert data["name"] == "Answer"
    assert len(session.calls) == 3
    assert len(fake_sleep.calls) == 2
    assert fake_sleep.calls[0] <= fake_sleep.calls[1]
    assert fetcher.stats.total_retries == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [429, 500])
async def test_persistent_failure_makes_retries_plus_one_attempts(
    session_factory, response_factory, fake_sleep, status
):
    session = session_factory(
        handler=lambda url, params: response_factory(status, "")
    )
    fetcher = make_fetcher(session, sleep=fake_sleep)

    with pytest.raises(HTTPStatusError) as exc_info:
        await fetcher.fetch(URL, options(retries=3, retry_delay_seconds=2.0))

    assert exc_info.value.status == status
    assert len(session.calls) == 4
    assert len(fake_sleep.calls) == 3
    assert fake_sleep.calls == sorted(fake_sleep.calls)
    assert fake_sleep.calls[0] >= 2.0
    assert fake_sleep.calls[2] >= 8.0


@pytest.mark.asyncio
async def test_429_surfaces_as_rate_limit_error(
    session_factory, response_factory, fake_sleep
):
    session = session_factory([response_factory(429, "")])
    fetcher = make_fetcher(session, sleep=fake_sleep)

    with pytest.raises(RateLimitError):
        await fetcher.fetch(URL, options(retries=0))


@pytest.mark.asyncio
async def test_transport_error(session_factory, fake_sleep):
    session = session_factory(
        [aiohttp.ClientConnectionError("refused"), OSError("reset")]
    )
    fetcher = make_fetcher(session, sleep=fake_sleep)

    with pytest.raises(TransportError):
        await fetcher.fetch(URL, options(retries=1))

    assert len(fake_sleep.calls) == 1


@pytest.mark.asyncio
async def test_invalid_json_is_decode_error(
    session_factory, response_factory, fake_sleep
):
    session = session_factory([response_factory(200, "<html>oops</html>")])
    fetcher = make_fetcher(session, sleep=fake_sleep)

    with pytest.raises(ResponseDecodeError):
        await fetcher.fetch(URL, options(retries=0))


@pytest.mark.asyncio
async def test_non_utf8_body_is_retried(
    session_factory, response_factory, fake_sleep
):
    session = session_factory(
        [
            response_factory(200, b'{"name": "Caf\xe9"}'),
            response_factory(200, {"ok": True}),
        ]
    )
    fetcher = make_fetcher(session, sleep=fake_sleep)

    data = await fetcher.fetch(URL, options(retries=1))

    assert data == {"ok": True}
    assert len(fake_sleep.calls) == 1


@pytest.mark.asyncio
async def test_non_utf8_body_exhausted(session_factory, response_factory, fake_sleep):
    session = session_factory(
        handler=lambda url, params: response_factory(200, b"\xff\xfe")
    )
    fetcher = make_fetcher(session, sleep=fake_sleep)

    with pytest.raises(ResponseDecodeError):
        await fetcher.fetch(URL, options(retries=0))


@pytest.mark.asyncio
async def test_timeout_is_retried_on_same_ladder(
    session_factory, response_factory, fake_sleep
):
    class SlowResponse:
        status = 200

        async def read(self):
            await asyncio.sleep(1)
            return b"{}"

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

    session = session_factory([SlowResponse(), response_factory(200, {"ok": True})])
    fetcher = make_fetcher(session, sleep=fake_sleep)

    data = await fetcher.fetch(URL, options(retries=2, timeout_seconds=0.01))

    assert data == {"ok": True}
    assert len(fake_sleep.calls) == 1
    assert fake_sleep.calls[0] >= 2.0


@pytest.mark.asyncio
async def test_timeout_exhaustion_raises_timeout_kind(session_factory, fake_sleep):
    class HangingResponse:
        status = 200

        async def read(self):
            await asyncio.sleep(1)
            return b"{}"

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

    session = session_factory(handler=lambda url, params: HangingResponse())
    fetcher = make_fetcher(session, sleep=fake_sleep)

    with pytest.raises(FetchTimeoutError):
        await fetcher.fetch(URL, options(retries=1, timeout_seconds=0.01))


@pytest.mark.asyncio
async def test_empty_body_is_absent_sentinel(
    session_factory, response_factory, fake_sleep
):
    session = session_factory([response_factory(200, "")])
    fetcher = make_fetcher(session, sleep=fake_sleep)

    assert await fetcher.fetch(URL, options()) == {}


@pytest.mark.asyncio
async def test_cache_hit_skips_network_and_limiter(
    session_factory, response_factory, cache, fake_sleep, fake_clock
):
    session = session_factory([response_factory(200, {"appid": 42})])
    limiter = RateLimiter(1, 1.0, clock=fake_clock, sleep=fake_sleep)
    fetcher = make_fetcher(session, cache=cache, sleep=fake_sleep)

    first = await fetcher.fetch(URL, options(), rate_limiter=limiter)
    second = await fetcher.fetch(URL, options(), rate_limiter=limiter)

    assert first == second == {"appid": 42}
    assert len(session.calls) == 1
    # The second call never asked the limiter for a token
    assert fake_sleep.calls == []
    assert fetcher.stats.total_attempts == 1


@pytest.mark.asyncio
async def test_ttl_zero_disables_cache(
    session_factory, response_factory, cache, fake_sleep
):
    session = session_factory(
        [response_factory(200, {"n": 1}), response_factory(200, {"n": 2})]
    )
    fetcher = make_fetcher(session, cache=cache, sleep=fake_sleep)

    assert await fetcher.fetch(URL, options(ttl_seconds=0)) == {"n": 1}
    assert await fetcher.fetch(URL, options(ttl_seconds=0)) == {"n": 2}
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_different_params_are_different_cache_keys(
    session_factory, response_factory, cache, fake_sleep
):
    session = session_factory(
        [response_factory(200, {"appid": 1}), response_factory(200, {"appid": 2})]
    )
    fetcher = make_fetcher(session, cache=cache, sleep=fake_sleep)

    await fetcher.fetch(URL, options(params={"request": "appdetails", "appid": 1}))
    await fetcher.fetch(URL, options(params={"request": "appdetails", "appid": 2}))

    assert len(session.calls) == 2


@pytest.mark.asyncio
async def test_limiter_consulted_per_attempt(
    session_factory, response_factory, fake_clock, fake_sleep
):
    session = session_factory(
        [response_factory(500, ""), response_factory(200, {"ok": True})]
    )
    limiter = RateLimiter(5, 1.0, clock=fake_clock, sleep=fake_sleep)
    fetcher = make_fetcher(session, sleep=fake_sleep)

    await fetcher.fetch(URL, options(), rate_limiter=limiter)

    assert limiter.tokens == pytest.approx(3.0)


@pytest.mark.asyncio
async def test_close_leaves_shared_session_open(session_factory):
    session = session_factory([])
    fetcher = make_fetcher(session)

    await fetcher.close()

    assert session.closed is False


def test_decode_body():
    assert decode_body("") == {}
    assert decode_body("  \n") == {}
    assert decode_body('{"a": 1}') == {"a": 1}
    assert decode_body(b"") == {}
    assert decode_body(b'{"appid": 570}') == {"appid": 570}
    with pytest.raises(ValueError):
        decode_body("not json")
    with pytest.raises(UnicodeDecodeError):
        decode_body(b"\xff\xfe")
