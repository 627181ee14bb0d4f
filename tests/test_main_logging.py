"""Tests for logging configuration."""
import logging
from pathlib import Path

import pytest

from linkfixer.main_logging import LOGGER_NAME, configure_logging


@pytest.fixture(autouse=True)
def restore_logger():
    """Put the application logger back the way the other tests expect it."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_info_level_by_default() -> None:
    logger = configure_logging(False)
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1


def test_verbose_enables_debug() -> None:
    assert configure_logging(True).level == logging.DEBUG


def test_reconfiguring_replaces_handlers() -> None:
    configure_logging(False)
    logger = configure_logging(False)
    assert len(logger.handlers) == 1


def test_errors_appended_to_log_file(tmp_path: Path) -> None:
    log_file = tmp_path / "linkfixer-error.log"
    log_file.write_text("earlier run\n", encoding="utf-8")
    logger = configure_logging(False, str(log_file))
    logger.info("not persisted")
    logger.error("clipboard write failed")
    for handler in logger.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert content.startswith("earlier run\n")
    assert "[ERROR] linkfixer: clipboard write failed" in content
    assert "not persisted" not in content


def test_unwritable_log_file_falls_back_to_stderr(tmp_path: Path) -> None:
    logger = configure_logging(False, str(tmp_path / "missing" / "error.log"))
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
