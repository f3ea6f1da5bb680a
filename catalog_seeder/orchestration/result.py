"""Seeding run result data structure."""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class SeedResult:
    """Result of a seeding run.

    ``processed`` counts identifiers handled by this run only; on a resumed
    run ``resumed_from`` is the offset it started at.
    """

    collected: int = 0
    processed: int = 0
    seeded: int = 0
    failed: int = 0
    skipped: int = 0
    batches: int = 0
    resumed_from: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "collected": self.collected,
            "processed": self.processed,
            "seeded": self.seeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "batches": self.batches,
            "resumed_from": self.resumed_from,
            "duration_seconds": round(self.duration_seconds, 3),
        }
