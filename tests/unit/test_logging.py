"""Tests for logging setup."""

import logging

import structlog

from wiredriver.utils.logging import get_logger, setup_logging


def test_setup_logging_quiets_http_client() -> None:
    """Test setup configures structlog and silences per-request client logs."""
    try:
        setup_logging(level="debug", debug=True)

        assert structlog.is_configured()
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpcore").level == logging.WARNING

        logger = get_logger("wiredriver.test")
        logger.info("Logging configured", component="test")
    finally:
        structlog.reset_defaults()
