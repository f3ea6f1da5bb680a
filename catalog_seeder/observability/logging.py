"""structlog configuration for seeding runs.

JSON lines on stderr by default, one event per line, so a long seed can be
piped into a log shipper while stdout carries the CLI summary. With
``LOG_JSON=false`` the colored console renderer is used instead. ``run_id``
and ``stage`` reach every event through contextvars bound in
``observability.context``.
"""

import logging
import sys
from typing import Any, List, Optional, TextIO

import structlog

from catalog_seeder.models.config import SeedSettings


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    add_timestamp: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog for the process.

    Args:
        level: Minimum level name; unknown names fall back to INFO
        json_output: JSON lines when True, console rendering otherwise
        add_timestamp: Add an ISO-8601 UTC ``timestamp`` key
        stream: Destination, stderr when omitted
    """
    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_output:
        # Tracebacks must be flattened to a string before JSON rendering
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream is None))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_from_settings(settings: SeedSettings, stream: Optional[TextIO] = None) -> None:
    """Apply ``log_level`` and ``log_json`` from loaded settings"""
    configure_logging(
        level=settings.log_level, json_output=settings.log_json, stream=stream
    )
