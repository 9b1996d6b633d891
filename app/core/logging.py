"""
Logging Setup - BD Scoring Platform
app/core/logging.py

Configures structlog from LOG_LEVEL / LOG_FORMAT settings.
"""

import logging
import sys

import structlog

from app.config import get_settings


def configure_logging() -> None:
    """Route stdlib logging and structlog through one renderer."""
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    if settings.LOG_FORMAT == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
