"""Unit tests for easyplots logging helpers."""

import logging
import sys

import pytest

from easyplots.utils.logging import LOGGER_NAME, configure_logging, get_logger


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(LOGGER_NAME)
    saved_handlers, saved_level = logger.handlers[:], logger.level
    yield logger
    for h in logger.handlers[:]:
        logger.removeHandler(h)
    for h in saved_handlers:
        logger.addHandler(h)
    logger.setLevel(saved_level)


def _stderr_handlers(logger):
    return [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr]


def test_get_logger_default_is_package_logger():
    assert get_logger().name == "easyplots"
    assert get_logger("easyplots.core").name == "easyplots.core"


def test_package_logger_has_null_handler():
    import easyplots  # noqa: F401

    assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger("easyplots").handlers)


def test_configure_logging_sets_level_and_single_handler(clean_logger):
    configure_logging(level="DEBUG")
    configure_logging(level="DEBUG")
    assert clean_logger.level == logging.DEBUG
    assert len(_stderr_handlers(clean_logger)) == 1


def test_configure_logging_force_replaces_handlers(clean_logger):
    configure_logging(level="INFO")
    configure_logging(level="WARNING", force=True)
    assert clean_logger.level == logging.WARNING
    assert len(clean_logger.handlers) == 1


def test_configure_logging_reads_env_var(clean_logger, monkeypatch):
    monkeypatch.setenv("EASYPLOTS_LOG_LEVEL", "ERROR")
    configure_logging(force=True)
    assert clean_logger.level == logging.ERROR
