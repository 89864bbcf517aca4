"""Centralized logging configuration."""

import logging
from typing import Dict, Optional

from flame_weather.config import DEBUG

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# None means "same level as the service"; httpx logs every request at INFO
THIRD_PARTY_LEVELS: Dict[str, Optional[int]] = {
    "uvicorn": None,
    "uvicorn.access": None,
    "uvicorn.error": None,
    "fastapi": None,
    "geopy": None,
    "httpx": logging.WARNING,
}


def _replace_handler(logger: logging.Logger, formatter: logging.Formatter) -> None:
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_logging(debug: bool = DEBUG) -> None:
    """
    Send service and third-party logs to one console format.

    Third-party loggers get their own handler and stop propagating, so
    uvicorn's access log is not printed twice.
    """
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _replace_handler(root_logger, formatter)

    for logger_name, override in THIRD_PARTY_LEVELS.items():
        logger = logging.getLogger(logger_name)
        logger.setLevel(override if override is not None else level)
        logger.propagate = False
        _replace_handler(logger, formatter)
