"""Seed command: run the two-stage seeding pipeline.

Handles credential checks, pipeline execution and result display.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from catalog_seeder.cli.utils import (
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_settings,
    logger,
)
from catalog_seeder.models.config import SeedSettings
from catalog_seeder.observability.context import run_context
from catalog_seeder.observability.metrics import write_metrics_file
from catalog_seeder.orchestration import SeedResult, create_context


@handle_errors
def seed_command(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Optional YAML file overriding the defaults",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show the plan without fetching or writing"
    ),
    metrics_file: Optional[Path] = typer.Option(
        None,
        "--metrics-file",
        help="Write Prometheus metrics to this file after the run",
    ),
):
    """Collect Steam app ids and upsert their details into Supabase."""
    settings = load_settings(config_path, require_credentials=not dry_run)

    if dry_run:
        _display_plan(settings)
        return

    display_info("Starting seeding pipeline...")

    try:
        result = asyncio.run(_run(settings))
    except Exception:
        display_warning(
            f"Checkpoint kept at {settings.checkpoint_file}; "
            "run again to resume from the last position"
        )
        raise
    finally:
        if metrics_file is not None:
            write_metrics_file(metrics_file)

    _display_results(result)


async def _run(settings: SeedSettings) -> SeedResult:
    with run_context(seed_limit=settings.seed_limit):
        context = create_context(settings)
        try:
            logger.info(
                "seeding_started",
                batch_size=settings.batch_size,
                request_interval_ms=settings.request_interval_ms,
                concurrency=settings.concurrency,
                checkpoint_file=settings.checkpoint_file,
            )
            return await context.create_pipeline().run()
        finally:
            await context.close()


def _display_plan(settings: SeedSettings) -> None:
    sources = settings.sources
    display_success("Dry run: Configuration valid.")
    typer.echo(f"  Target ids: {settings.seed_limit}")
    typer.echo(f"  Batch size: {settings.batch_size}")
    typer.echo(f"  Request interval: {settings.request_interval_ms}ms")
    typer.echo(f"  Concurrency: {settings.concurrency}")
    typer.echo(f"  Checkpoint: {settings.checkpoint_file}")
    typer.echo("Sources, in order:")
    for request in sources.top_lists:
        typer.echo(f" - steamspy:top:{request}")
    for genre in sources.genres:
        typer.echo(f" - steamspy:genre:{genre}")
    for tag in sources.tags:
        typer.echo(f" - steamspy:tag:{tag}")
    if sources.include_web_catalog:
        typer.echo(" - steam_web:app_list")
    if sources.include_steamspy_all:
        typer.echo(" - steamspy:all")

    estimated_minutes = (
        settings.seed_limit * settings.request_interval_seconds / settings.concurrency
    ) / 60
    typer.echo(f"Estimated upsert time: ~{estimated_minutes:.0f} minutes")

    if not settings.store.has_credentials:
        display_warning("Supabase credentials are not set; a real run would fail.")


def _display_results(result: SeedResult) -> None:
    typer.echo("")
    typer.secho("Seeding complete!", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"  Identifiers collected: {result.collected}")
    if result.resumed_from:
        typer.echo(f"  Resumed from index: {result.resumed_from}")
    typer.echo(f"  Processed this run: {result.processed}")
    typer.echo(f"  Seeded: {result.seeded}")
    typer.echo(f"  Skipped: {result.skipped}")
    typer.echo(f"  Batches: {result.batches}")
    typer.echo(f"  Duration: {result.duration_seconds:.1f}s")

    if result.failed:
        display_warning(f"  Failed (store errors): {result.failed}")
