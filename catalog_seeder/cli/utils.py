"""Helpers shared by the seeder's CLI commands."""

import functools
from pathlib import Path
from typing import Callable, Optional, TypeVar

import structlog
import typer

from catalog_seeder.models.config import SeedSettings
from catalog_seeder.observability.logging import configure_from_settings
from catalog_seeder.services.config_manager import (
    ConfigManager,
    ConfigValidationError,
    require_store_credentials,
)
from catalog_seeder.utils.exceptions import ConfigurationError, SeederError

logger = structlog.get_logger()

F = TypeVar("F", bound=Callable)

_STYLES = {
    "success": typer.colors.GREEN,
    "warning": typer.colors.YELLOW,
    "error": typer.colors.RED,
    "info": typer.colors.CYAN,
}


def display(message: str, style: str = "info") -> None:
    typer.secho(message, fg=_STYLES[style])


display_success = functools.partial(display, style="success")
display_warning = functools.partial(display, style="warning")
display_error = functools.partial(display, style="error")
display_info = functools.partial(display, style="info")


def load_settings(
    config_path: Optional[Path] = None, require_credentials: bool = False
) -> SeedSettings:
    """Load settings for a command and configure logging from them.

    Args:
        config_path: Optional YAML overrides file
        require_credentials: Also insist on Supabase URL and key

    Raises:
        typer.Exit: Settings are missing, invalid or lack credentials
    """
    manager = ConfigManager(config_path=str(config_path) if config_path else None)
    try:
        settings = manager.load_settings()
        if require_credentials:
            require_store_credentials(settings)
    except (FileNotFoundError, ConfigValidationError, ConfigurationError) as e:
        display_error(f"Configuration Error: {e}")
        raise typer.Exit(code=1)

    configure_from_settings(settings)
    return settings


def handle_errors(func: F) -> F:
    """Turn failures escaping a command into a message and exit code 1.

    Seeder errors are expected operational failures and are logged without
    a traceback; anything else is logged with one.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (typer.Exit, typer.Abort):
            raise
        except ConfigurationError as e:
            display_error(f"Configuration Error: {e}")
            raise typer.Exit(code=1)
        except SeederError as e:
            logger.error("command_failed", error_type=type(e).__name__, error=str(e))
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)
        except Exception as e:
            logger.exception("command_crashed", error_type=type(e).__name__)
            display_error(f"Error: {e}")
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]
