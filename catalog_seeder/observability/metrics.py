"""Prometheus metrics definitions for the catalog seeder.

Defines counters, gauges, and histograms for monitoring:
- External fetch attempts, retries and cache effectiveness
- Rate limiter back-pressure
- Identifier collection per source
- Detail fetch attrition and batch upsert outcomes
- Checkpoint activity

Usage:
    from catalog_seeder.observability.metrics import (
        FETCH_ATTEMPTS,
        RECORDS_UPSERTED,
        BATCH_UPSERT_DURATION,
    )

    # Increment counter
    RECORDS_UPSERTED.labels(status="success").inc(250)

    # Track histogram
    with BATCH_UPSERT_DURATION.time():
        store.upsert(rows, on_conflict="appid")

The seed command can dump the registry to a file for a node_exporter
textfile collector (see ``write_metrics_file``).
"""

from pathlib import Path
from typing import Union

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    generate_latest,
)

# Custom registry to avoid conflicts with default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS - Monotonically increasing values
# =============================================================================

FETCH_ATTEMPTS = Counter(
    name="seeder_fetch_attempts_total",
    documentation="Total HTTP attempts made by the resilient fetcher",
    labelnames=["outcome"],  # success, http_error, rate_limited, timeout, transport, decode
    registry=REGISTRY,
)

FETCH_RETRIES = Counter(
    name="seeder_fetch_retries_total",
    documentation="Total backoff sleeps between fetch attempts",
    registry=REGISTRY,
)

CACHE_OPERATIONS = Counter(
    name="seeder_cache_operations_total",
    documentation="Total response cache operations",
    labelnames=["operation"],  # hit, miss, set, expired, evicted
    registry=REGISTRY,
)

RATE_LIMIT_WAIT_SECONDS = Counter(
    name="seeder_rate_limit_wait_seconds_total",
    documentation="Seconds spent waiting for rate limiter tokens",
    labelnames=["limiter"],  # steamspy, steamspy_all, steam_web, steam_store
    registry=REGISTRY,
)

IDS_COLLECTED = Counter(
    name="seeder_ids_collected_total",
    documentation="Identifiers returned by each collection source",
    labelnames=["source"],
    registry=REGISTRY,
)

SOURCE_FAILURES = Counter(
    name="seeder_source_failures_total",
    documentation="Collection sources that failed and contributed nothing",
    labelnames=["source"],
    registry=REGISTRY,
)

DETAILS_SKIPPED = Counter(
    name="seeder_details_skipped_total",
    documentation="Identifiers skipped during detail fetch",
    labelnames=["reason"],  # not_found, invalid, fetch_failed
    registry=REGISTRY,
)

RECORDS_UPSERTED = Counter(
    name="seeder_records_upserted_total",
    documentation="Records written to the store",
    labelnames=["status"],  # success, failed
    registry=REGISTRY,
)

CHECKPOINT_SAVES = Counter(
    name="seeder_checkpoint_saves_total",
    documentation="Checkpoint writes",
    labelnames=["stage"],  # collection, upserting
    registry=REGISTRY,
)

# =============================================================================
# GAUGES - Values that can go up and down
# =============================================================================

PIPELINE_PROGRESS = Gauge(
    name="seeder_last_processed_index",
    documentation="Index of the next unprocessed identifier",
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS - Distribution of values
# =============================================================================

FETCH_DURATION = Histogram(
    name="seeder_fetch_duration_seconds",
    documentation="Duration of a single HTTP attempt in seconds",
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30, float("inf")),
    registry=REGISTRY,
)

BATCH_UPSERT_DURATION = Histogram(
    name="seeder_batch_upsert_duration_seconds",
    documentation="Duration of one batch upsert in seconds",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, float("inf")),
    registry=REGISTRY,
)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text format.

    Returns:
        UTF-8 encoded metrics in Prometheus exposition format.
    """
    return generate_latest(REGISTRY)


def write_metrics_file(path: Union[str, Path]) -> Path:
    """Write the registry to ``path`` atomically.

    Args:
        path: Destination file (usually ``*.prom`` in a textfile collector dir)

    Returns:
        The written path
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    temp = target.with_suffix(target.suffix + ".tmp")
    temp.write_bytes(get_metrics_text())
    temp.replace(target)
    return target
