"""Observability for the catalog seeder.

Provides:
- Run and stage identity bound into every log event
- structlog configuration from settings
- Prometheus metrics for seeding throughput and API health

Usage:
    from catalog_seeder.observability import run_context, RECORDS_UPSERTED

    with run_context() as run_id:
        RECORDS_UPSERTED.labels(status="success").inc(250)
"""

from catalog_seeder.observability.context import (
    get_run_id,
    new_run_id,
    run_context,
    stage_context,
)
from catalog_seeder.observability.logging import (
    configure_from_settings,
    configure_logging,
)
from catalog_seeder.observability.metrics import (
    FETCH_ATTEMPTS,
    FETCH_RETRIES,
    CACHE_OPERATIONS,
    RATE_LIMIT_WAIT_SECONDS,
    IDS_COLLECTED,
    SOURCE_FAILURES,
    DETAILS_SKIPPED,
    RECORDS_UPSERTED,
    CHECKPOINT_SAVES,
    PIPELINE_PROGRESS,
    FETCH_DURATION,
    BATCH_UPSERT_DURATION,
    get_metrics_text,
    write_metrics_file,
)

__all__ = [
    # Context
    "get_run_id",
    "new_run_id",
    "run_context",
    "stage_context",
    # Logging
    "configure_from_settings",
    "configure_logging",
    # Metrics
    "FETCH_ATTEMPTS",
    "FETCH_RETRIES",
    "CACHE_OPERATIONS",
    "RATE_LIMIT_WAIT_SECONDS",
    "IDS_COLLECTED",
    "SOURCE_FAILURES",
    "DETAILS_SKIPPED",
    "RECORDS_UPSERTED",
    "CHECKPOINT_SAVES",
    "PIPELINE_PROGRESS",
    "FETCH_DURATION",
    "BATCH_UPSERT_DURATION",
    "get_metrics_text",
    "write_metrics_file",
]
