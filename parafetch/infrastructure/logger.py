"""
Package-wide logger for ParaFetch.
"""

import logging
import sys


LOGGER_NAME = "ParaFetch"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str = LOGGER_NAME, level: int = logging.INFO) -> logging.Logger:
    """
    Create or fetch a configured logger.

    A stream handler is attached only once, so repeated imports do not
    duplicate output.
    """

    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    log.setLevel(level)
    return log


logger = get_logger()


__all__ = [
    "LOGGER_NAME",
    "get_logger",
    "logger",
]
