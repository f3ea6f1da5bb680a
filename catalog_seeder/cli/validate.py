"""Validate command for configuration.

Validates the YAML file (if any) together with the environment.
"""

from pathlib import Path
from typing import Optional

import typer

from catalog_seeder.services.config_manager import ConfigManager
from catalog_seeder.cli.utils import (
    display_error,
    display_success,
    display_warning,
    handle_errors,
)


@handle_errors
def validate_command(
    config_path: Optional[Path] = typer.Argument(
        None, help="Config file to validate (environment only if omitted)"
    ),
    require_credentials: bool = typer.Option(
        False, "--require-credentials", help="Fail when Supabase credentials are missing"
    ),
):
    """Validate configuration syntax and semantics."""
    try:
        manager = ConfigManager(config_path=str(config_path) if config_path else None)
        settings = manager.load_settings()
    except Exception as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    if not settings.store.has_credentials:
        if require_credentials:
            display_error(
                "Validation failed: SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required"
            )
            raise typer.Exit(code=1)
        display_warning("Supabase credentials are not set")

    display_success("Configuration is valid!")
