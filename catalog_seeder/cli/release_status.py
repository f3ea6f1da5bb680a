"""Release-status command: look up Coming Soon state on the Steam Store."""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Union

import typer

from catalog_seeder.cli.utils import display_warning, handle_errors, load_settings, logger
from catalog_seeder.models.config import SeedSettings
from catalog_seeder.models.game import ReleaseStatus
from catalog_seeder.orchestration import create_context
from catalog_seeder.utils.exceptions import SeederError

Lookup = Union[ReleaseStatus, SeederError, None]


@handle_errors
def release_status_command(
    appids: List[int] = typer.Argument(..., help="Steam app ids to look up"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Optional YAML file overriding the defaults"
    ),
):
    """Show whether each app is released or Coming Soon."""
    settings = load_settings(config_path)
    statuses = asyncio.run(_lookup(settings, appids))

    for appid in appids:
        status = statuses.get(appid)
        if isinstance(status, SeederError):
            display_warning(f"{appid}: lookup failed ({status})")
        elif status is None:
            display_warning(f"{appid}: no store entry")
        elif status.coming_soon:
            typer.secho(
                f"{appid}: coming soon ({status.date or 'TBA'})", fg=typer.colors.YELLOW
            )
        else:
            typer.secho(f"{appid}: released {status.date}", fg=typer.colors.GREEN)


async def _lookup(settings: SeedSettings, appids: List[int]) -> Dict[int, Lookup]:
    """Look up each app; a failed lookup is kept as its error"""
    context = create_context(settings, connect_store=False)
    statuses: Dict[int, Lookup] = {}
    try:
        for appid in appids:
            try:
                statuses[appid] = await context.steam_store.release_status(appid)
            except SeederError as e:
                logger.warning(
                    "release_status_failed",
                    appid=appid,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                statuses[appid] = e
        return statuses
    finally:
        await context.close()
