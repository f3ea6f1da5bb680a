"""Catalog Seeder CLI Package.

Usage:
    python -m catalog_seeder.cli seed
    python -m catalog_seeder.cli seed --config config/seed_config.yaml --metrics-file seed.prom
    python -m catalog_seeder.cli status
    python -m catalog_seeder.cli validate config/seed_config.yaml
    python -m catalog_seeder.cli release-status 570 730
    python -m catalog_seeder.cli clear-checkpoint --yes
"""

import typer

from catalog_seeder.cli.release_status import release_status_command
from catalog_seeder.cli.seed import seed_command
from catalog_seeder.cli.status import clear_checkpoint_command, status_command
from catalog_seeder.cli.validate import validate_command

app = typer.Typer(help="Seed the steam_games table from SteamSpy and the Steam Web API")

app.command(name="seed")(seed_command)
app.command(name="status")(status_command)
app.command(name="validate")(validate_command)
app.command(name="release-status")(release_status_command)
app.command(name="clear-checkpoint")(clear_checkpoint_command)

__all__ = [
    "app",
    "seed_command",
    "status_command",
    "validate_command",
    "release_status_command",
    "clear_checkpoint_command",
]
