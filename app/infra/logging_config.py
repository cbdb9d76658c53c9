"""Logging setup: one stream handler on the application logger, children per module."""

from __future__ import annotations

import logging
import sys
from typing import Optional

APP_LOGGER_NAME = "blinkchat"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stream handler to the application logger once and set its level."""
    logger = logging.getLogger(APP_LOGGER_NAME)
    if not any(getattr(h, "_blinkchat", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._blinkchat = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    if level:
        logger.setLevel(level.upper())
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the application logger, or a named child of it."""
    if not name:
        return logging.getLogger(APP_LOGGER_NAME)
    return logging.getLogger(f"{APP_LOGGER_NAME}.{name}")
