"""Tests for run and stage scopes on seeding logs."""

import asyncio
import re

import pytest
import structlog

from catalog_seeder.models.checkpoint import SeedStage
from catalog_seeder.observability.context import (
    get_run_id,
    new_run_id,
    run_context,
    stage_context,
)


@pytest.fixture(autouse=True)
def empty_contextvars():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def test_new_run_id_format():
    first, second = new_run_id(), new_run_id()

    assert re.fullmatch(r"seed-[0-9a-f]{12}", first)
    assert first != second


def test_no_run_id_outside_a_run():
    assert get_run_id() is None


class TestRunContext:
    def test_binds_generated_id(self):
        with run_context() as run_id:
            assert run_id.startswith("seed-")
            assert get_run_id() == run_id

        assert get_run_id() is None

    def test_reuses_given_id_and_fields(self):
        with run_context("seed-resume-2", seed_limit=500):
            bound = structlog.contextvars.get_contextvars()

        assert bound == {"run_id": "seed-resume-2", "seed_limit": 500}
        assert structlog.contextvars.get_contextvars() == {}

    def test_unbinds_when_run_fails(self):
        with pytest.raises(RuntimeError):
            with run_context("seed-crashed"):
                raise RuntimeError("store unreachable")

        assert get_run_id() is None

    def test_keeps_bindings_made_before_the_run(self):
        structlog.contextvars.bind_contextvars(command="seed")

        with run_context("seed-1"):
            pass

        assert structlog.contextvars.get_contextvars() == {"command": "seed"}

    @pytest.mark.asyncio
    async def test_fetch_tasks_inherit_run_id(self):
        async def fetch_detail():
            await asyncio.sleep(0)
            return get_run_id()

        with run_context("seed-async"):
            seen = await asyncio.gather(fetch_detail(), fetch_detail())

        assert seen == ["seed-async", "seed-async"]

    @pytest.mark.asyncio
    async def test_concurrent_runs_stay_apart(self):
        async def run(run_id):
            with run_context(run_id):
                await asyncio.sleep(0)
                return get_run_id()

        seen = await asyncio.gather(run("seed-a"), run("seed-b"))

        assert seen == ["seed-a", "seed-b"]


class TestStageContext:
    def test_binds_stage_value(self):
        with run_context("seed-1"):
            with stage_context(SeedStage.COLLECTION):
                assert structlog.contextvars.get_contextvars()["stage"] == "collection"
            assert "stage" not in structlog.contextvars.get_contextvars()
            assert get_run_id() == "seed-1"

    def test_nested_stage_restores_outer(self):
        with stage_context(SeedStage.COLLECTION):
            with stage_context("source:steamspy:all"):
                assert structlog.contextvars.get_contextvars()["stage"] == "source:steamspy:all"
            assert structlog.contextvars.get_contextvars()["stage"] == "collection"
