from __future__ import annotations

import logging

from cosmic_split.logging.init import LOGGER_NAME, SUMMARY_LEVEL, get_logger, log_summary, setup_logging


def test_setup_logging_creates_single_labeled_handler():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME == "cosmic_split"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.StreamHandler)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    assert setup_logging() is setup_logging()
    assert len(logging.getLogger(LOGGER_NAME).handlers) == 1


def test_labeled_prefixes(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logger.error("broken")
    log_summary("state=done")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "ERROR broken", "SUMMARY state=done"]


def test_module_loggers_share_the_handler(capsys):
    setup_logging()
    logging.getLogger("cosmic_split.services.orchestrator").info("from module")
    assert "INFO from module" in capsys.readouterr().out


def test_debug_mode(capsys):
    setup_logging()
    logger = setup_logging(debug=True)
    assert logger.level == logging.DEBUG
    logger.debug("detail")
    assert "DEBUG detail" in capsys.readouterr().out


def test_get_logger_configures_on_first_use():
    assert get_logger().name == LOGGER_NAME
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
