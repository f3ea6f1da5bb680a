"""Status and checkpoint maintenance commands."""

from pathlib import Path
from typing import Optional

import typer

from catalog_seeder.cli.utils import (
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_settings,
)
from catalog_seeder.services.checkpoint_service import CheckpointService
from catalog_seeder.services.storage.supabase_store import SupabaseGameStore


@handle_errors
def status_command(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Optional YAML file overriding the defaults"
    ),
    count_rows: bool = typer.Option(
        True, "--count/--no-count", help="Query the store for its row count"
    ),
):
    """Show the saved checkpoint and the number of seeded rows."""
    settings = load_settings(config_path)
    checkpoints = CheckpointService(settings.checkpoint_file)

    if not checkpoints.exists():
        display_info(f"No checkpoint at {settings.checkpoint_file}")
    else:
        checkpoint = checkpoints.load()
        if checkpoint is None:
            display_warning(
                f"Checkpoint at {settings.checkpoint_file} is unreadable; "
                "the next run starts over"
            )
        else:
            typer.secho("Checkpoint:", bold=True)
            typer.echo(f"  Stage: {checkpoint.stage.value}")
            typer.echo(f"  Identifiers: {len(checkpoint.identifiers)}")
            typer.echo(f"  Last processed index: {checkpoint.last_processed_index}")
            typer.echo(f"  Remaining: {checkpoint.remaining}")
            typer.echo(f"  Batches completed: {checkpoint.batches_completed}")
            typer.echo(f"  Saved at: {checkpoint.timestamp.isoformat()}")

    if not count_rows:
        return

    if not settings.store.has_credentials:
        display_warning("Supabase credentials are not set; skipping row count")
        return

    store = SupabaseGameStore(
        settings.store.supabase_url or "",
        settings.store.supabase_key or "",
        table=settings.store.table,
    )
    display_success(f"Rows in {settings.store.table}: {store.count():,}")


@handle_errors
def clear_checkpoint_command(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Optional YAML file overriding the defaults"
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete the checkpoint so the next run starts from collection."""
    settings = load_settings(config_path)
    checkpoints = CheckpointService(settings.checkpoint_file)

    if not checkpoints.exists():
        display_info(f"No checkpoint at {settings.checkpoint_file}")
        return

    if not yes:
        typer.confirm(f"Delete {settings.checkpoint_file}?", abort=True)

    checkpoints.clear()
    display_success(f"Removed {settings.checkpoint_file}")
