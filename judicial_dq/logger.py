"""Structured logging via structlog; JSON outside development."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

import structlog

from judicial_dq.config import Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog processors for the remediation services."""
    settings = settings or get_settings()

    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.environment == "development"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        # Uncached loggers follow stdout redirection (CLI pipes, test capture).
        cache_logger_on_first_use=settings.environment == "production",
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def bound_context(**values: object) -> Iterator[None]:
    """Attach ``values`` (e.g. run_id, plan_id) to every log line in the block."""
    tokens = structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
