"""Structured logging configuration using structlog."""

import sys

import structlog
from devrate.config import settings

_LEVELS = {"debug": 10, "info": 20, "warning": 30, "error": 40, "critical": 50}
_ALIASES = {"warn": "warning", "fatal": "critical"}


def level_name(value: str) -> str:
    """Canonical lowercase level name; unknown values fall back to "info"."""
    name = value.strip().lower()
    name = _ALIASES.get(name, name)
    return name if name in _LEVELS else "info"


def setup_logging() -> None:
    """Configure structlog for DevRate.

    Uses console renderer for development, JSON for production. Log lines go
    to stderr so terminal output on stdout stays clean.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    log_level = _LEVELS[level_name(settings.log_level)]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Module logger tagged with ``component=name``.

    Returned lazily: configuration is resolved on first use, so loggers
    created at import time still follow a later setup_logging() call.
    """
    if name:
        return structlog.get_logger(component=name)
    return structlog.get_logger()
