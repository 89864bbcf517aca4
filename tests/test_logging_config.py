"""Tests for the console logging setup."""

import logging

import pytest

from flame_weather.logging_config import THIRD_PARTY_LEVELS, configure_logging


@pytest.fixture
def restore_loggers():
    names = [None, *THIRD_PARTY_LEVELS]
    saved = {
        name: (logging.getLogger(name).level, logging.getLogger(name).handlers[:], logging.getLogger(name).propagate)
        for name in names
    }
    yield
    for name, (level, handlers, propagate) in saved.items():
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.handlers[:] = handlers
        logger.propagate = propagate


def test_levels_follow_debug_flag(restore_loggers):
    configure_logging(debug=True)

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("geopy").level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_repeated_setup_keeps_one_handler(restore_loggers):
    configure_logging(debug=False)
    configure_logging(debug=False)

    uvicorn_logger = logging.getLogger("uvicorn.access")
    assert len(uvicorn_logger.handlers) == 1
    assert not uvicorn_logger.propagate
    assert logging.getLogger().level == logging.INFO
