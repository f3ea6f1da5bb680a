"""Orchestration of a seeding run: composition root, pipeline and result."""

from catalog_seeder.orchestration.context import SeederContext, create_context
from catalog_seeder.orchestration.pipeline import SeedingPipeline
from catalog_seeder.orchestration.result import SeedResult

__all__ = [
    "SeederContext",
    "SeedingPipeline",
    "SeedResult",
    "create_context",
]
