"""Run and stage identity for seeding logs.

A seed invocation runs inside ``run_context``, which binds a ``run_id`` into
structlog's contextvars. The pipeline then wraps each stage in
``stage_context``. Every event logged by the fetcher, the collector and the
store during that time carries both keys without those services knowing
about them, and the previous bindings come back when a scope exits.

Usage:
    with run_context(seed_limit=50000) as run_id:
        with stage_context(SeedStage.COLLECTION):
            ...
"""

import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Union

import structlog

from catalog_seeder.models.checkpoint import SeedStage

RUN_ID_PREFIX = "seed-"


def new_run_id() -> str:
    """Return an id such as ``seed-3f9a1c2b7d4e``"""
    return f"{RUN_ID_PREFIX}{uuid.uuid4().hex[:12]}"


def get_run_id() -> Optional[str]:
    """Run id bound in the current context, or None outside a run"""
    return structlog.contextvars.get_contextvars().get("run_id")


@contextmanager
def run_context(run_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """Bind a run id (and any extra fields) for the duration of one run.

    Args:
        run_id: Reuse this id instead of generating one
        **fields: Extra keys logged with every event, e.g. seed_limit

    Yields:
        The run id in effect
    """
    run_id = run_id or new_run_id()
    with structlog.contextvars.bound_contextvars(run_id=run_id, **fields):
        yield run_id


@contextmanager
def stage_context(stage: Union[SeedStage, str]) -> Iterator[None]:
    name = stage.value if isinstance(stage, SeedStage) else stage
    with structlog.contextvars.bound_contextvars(stage=name):
        yield
