"""
Logging Configuration

structlog setup shared by the server, the CLI and the startup prober.
"""

from __future__ import annotations

import logging

import structlog


def drop_event(logger, method_name, event_dict):
    """Processor discarding every event that survives level filtering."""
    raise structlog.DropEvent


def configure_logging(
    level: str = "INFO",
    pretty: bool = False,
    silent: bool = False,
) -> None:
    """
    Configure structlog for the process.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        pretty: Render colored console output instead of JSON lines
        silent: Drop every log event
    """
    if silent:
        min_level = logging.CRITICAL
    else:
        min_level = logging.getLevelName(level.upper())
        if not isinstance(min_level, int):
            min_level = logging.INFO

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if silent:
        processors.insert(0, drop_event)
    if pretty:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        # ConsoleRenderer formats exceptions itself
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        cache_logger_on_first_use=False,
    )
