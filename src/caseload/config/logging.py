"""structlog setup shared by the API server and the CLI."""

from __future__ import annotations

import logging

import structlog


def configure_logging(env: str = "development", level: int = logging.INFO) -> None:
    """Configure structlog rendering for the given environment.

    Production gets one JSON object per line; everything else gets the
    colored console renderer.

    Args:
        env: Application environment name.
        level: Minimum log level.
    """
    renderer: structlog.types.Processor
    if env == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
