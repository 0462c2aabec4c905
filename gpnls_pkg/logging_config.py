"""Logging setup for gpnls.

All package loggers live under the ``gpnls`` namespace so that an embedding
application can tune them with a single ``logging.getLogger("gpnls")`` call.
"""

from __future__ import annotations

import logging

from .config import LOG_LEVEL

ROOT_LOGGER_NAME = "gpnls"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return the package logger for a component, e.g. ``get_logger("lsq")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def setup_logging(level: str | int = LOG_LEVEL, log_file: str | None = None) -> logging.Logger:
    """Configure handlers for the ``gpnls`` logger hierarchy.

    Args:
        level: Logging level name or number
        log_file: Optional path of a file that also receives the records

    Returns:
        The configured root package logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    # Calling setup twice must not duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
