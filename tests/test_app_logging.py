"""Tests for logging configuration."""

import logging

from meal_coach.app_logging import LOGGER_NAME, configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging("debug")
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_service_loggers_inherit_package_level() -> None:
    configure_logging("warning")

    child = logging.getLogger("meal_coach.services.sync")

    assert child.getEffectiveLevel() == logging.WARNING
