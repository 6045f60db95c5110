"""Tests for logging setup."""

import logging

import pytest

from archlens import logging_config
from archlens.logging_config import ROOT_LOGGER, get_logger, setup_logging


@pytest.fixture
def clean_logger(monkeypatch):
    """Restore the archlens logger and setup state after each test."""
    logger = logging.getLogger(ROOT_LOGGER)
    before = list(logger.handlers)
    level = logger.level
    monkeypatch.setattr(logging_config, "_initialized", False)
    yield logger
    for handler in list(logger.handlers):
        if handler not in before:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def _flush(logger):
    for handler in logger.handlers:
        handler.flush()


class TestSetupLogging:
    def test_log_file(self, clean_logger, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        setup_logging(level=logging.INFO, log_file=log_file)
        get_logger("archlens.test").info("parsing started")
        _flush(clean_logger)
        assert "parsing started" in log_file.read_text()

    def test_second_call_adds_log_file(self, clean_logger, tmp_path):
        first = tmp_path / "first.log"
        second = tmp_path / "second.log"
        setup_logging(level=logging.INFO, log_file=first)
        setup_logging(level=logging.INFO, log_file=second)
        get_logger("archlens.test").info("second run")
        _flush(clean_logger)
        assert "second run" in second.read_text()

    def test_same_log_file_not_duplicated(self, clean_logger, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging(level=logging.INFO, log_file=log_file)
        setup_logging(level=logging.DEBUG, log_file=log_file)
        file_handlers = [h for h in clean_logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].level == logging.DEBUG


class TestGetLogger:
    def test_prefixes_namespace(self):
        assert get_logger("extractor").name == "archlens.extractor"

    def test_keeps_qualified_name(self):
        assert get_logger("archlens.graph").name == "archlens.graph"
