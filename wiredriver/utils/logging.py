"""Structured logging setup."""

import logging
import sys
from typing import cast

import structlog

from wiredriver.config import settings


def setup_logging(level: str | None = None, debug: bool | None = None) -> None:
    """
    Configure structured logging for an application using wiredriver.

    The library never calls this itself: modules only obtain loggers through
    get_logger, so records follow whatever configuration the application
    installed. Call it once at startup to get the default structlog setup.

    Args:
        level: Log level name, defaults to settings.log_level
        debug: Console rendering instead of JSON, defaults to settings.debug
    """
    debug = settings.debug if debug is None else debug
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.dev.ConsoleRenderer()
                if debug
                else structlog.processors.JSONRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Driver output is copied to stdout, keep our own records on stderr
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance for the given name."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
