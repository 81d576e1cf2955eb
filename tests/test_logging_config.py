import logging

import pytest

from content_assets.core.logging_config import DEFAULT_LOG_LEVEL, LOG_FORMAT, setup_logging


@pytest.fixture
def app_logger():
    logger = logging.getLogger("content_assets")
    original_level = logger.level
    original_handlers = list(logger.handlers)
    logger.handlers.clear()
    yield logger
    logger.handlers[:] = original_handlers
    logger.setLevel(original_level)


def test_setup_logging_with_level_name(app_logger):
    setup_logging("debug")
    assert app_logger.level == logging.DEBUG
    assert len(app_logger.handlers) == 1
    assert app_logger.handlers[0].formatter._fmt == LOG_FORMAT


def test_setup_logging_does_not_duplicate_handlers(app_logger):
    setup_logging(logging.WARNING)
    setup_logging(logging.INFO)
    assert app_logger.level == logging.INFO
    assert len(app_logger.handlers) == 1


def test_setup_logging_reads_environment(app_logger, monkeypatch):
    monkeypatch.setenv("CONTENT_ASSETS_LOG_LEVEL", "ERROR")
    setup_logging()
    assert app_logger.level == logging.ERROR


def test_setup_logging_defaults_without_environment(app_logger, monkeypatch):
    monkeypatch.delenv("CONTENT_ASSETS_LOG_LEVEL", raising=False)
    setup_logging()
    assert app_logger.level == DEFAULT_LOG_LEVEL


def test_invalid_level_warns_and_falls_back(app_logger, capsys):
    setup_logging("chatty")
    assert app_logger.level == DEFAULT_LOG_LEVEL
    assert "Invalid log level string 'chatty'" in capsys.readouterr().err
