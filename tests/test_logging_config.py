"""
test_logging_config.py — Tests for swagsuite/logging_config.py

Verifies Loguru setup, stdlib logging interception, and request
context binding. Uses loguru's sink capture for assertions.

Called by: pytest
Depends on: swagsuite/logging_config.py
"""

import logging
from unittest.mock import patch

import pytest
from loguru import logger

from swagsuite.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _clean_loguru():
    """Remove all handlers before/after each test for isolation."""
    logger.remove()
    yield
    logger.remove()


def _settings(**overrides):
    from unittest.mock import MagicMock

    mock = MagicMock()
    mock.log_level = overrides.get("log_level", "INFO")
    mock.is_production = overrides.get("is_production", False)
    return mock


def test_setup_logging_adds_handler():
    """setup_logging() should add at least one Loguru handler."""
    assert len(logger._core.handlers) == 0
    with patch("swagsuite.logging_config.settings", _settings()):
        setup_logging()
    assert len(logger._core.handlers) > 0


def test_stdlib_logging_intercepted():
    """After setup, stdlib logging.getLogger() messages go through Loguru."""
    with patch("swagsuite.logging_config.settings", _settings()):
        setup_logging()

    messages = []
    logger.add(lambda m: messages.append(str(m)), format="{message}")

    logging.getLogger("test.intercept").warning("intercepted message")

    assert any("intercepted message" in m for m in messages)


def test_log_level_from_settings():
    with patch("swagsuite.logging_config.settings", _settings(log_level="warning")):
        with patch("loguru.logger.add") as mock_add:
            setup_logging()
    assert mock_add.call_args_list[0].kwargs["level"] == "WARNING"


def test_context_binding():
    """logger.contextualize() adds fields to log records."""
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")

    with logger.contextualize(request_id="abc123"):
        logger.info("request log")

    assert records[-1]["extra"].get("request_id") == "abc123"


def test_context_not_leaked():
    records = []
    logger.add(lambda m: records.append(m.record), format="{message}")

    with logger.contextualize(request_id="abc123"):
        logger.info("inside")
    logger.info("outside")

    assert "request_id" not in records[-1]["extra"]


def test_production_mode_uses_serialize():
    """In production, logs are emitted as JSON lines (serialize=True)."""
    with patch("swagsuite.logging_config.settings", _settings(is_production=True)):
        with patch("loguru.logger.add") as mock_add:
            setup_logging()
    serialize_calls = [c for c in mock_add.call_args_list if c.kwargs.get("serialize") is True]
    assert len(serialize_calls) == 1


def test_development_mode_colorizes():
    with patch("swagsuite.logging_config.settings", _settings(is_production=False)):
        with patch("loguru.logger.add") as mock_add:
            setup_logging()
    assert mock_add.call_args_list[0].kwargs.get("colorize") is True
