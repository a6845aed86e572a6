"""
Logging setup shared by all modules.

Every module logger is a child of the "countdown" logger, which owns the
single stream handler.
"""

import logging
import sys

from countdown.core.config import get_settings

ROOT_LOGGER_NAME = "countdown"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a named logger, attaching the stream handler on first use."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(get_settings().LOG_LEVEL.upper())
    return logging.getLogger(name)


logger = setup_logger()
