"""
Structured logging setup.
"""

import logging

import structlog

from ..config import get_settings


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """
    Configure structlog for the engine.

    Args:
        level: Minimum log level name (DEBUG, INFO, WARNING, ...); defaults to settings
        json_output: Render JSON lines instead of the console renderer; defaults to settings
    """
    settings = get_settings()
    level = level or settings.log_level
    if json_output is None:
        json_output = settings.log_json

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
