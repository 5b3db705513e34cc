from __future__ import annotations

import logging
import sys

from serial_worker.config import get_settings

LOGGER_NAME = "serial_worker"
LOG_FORMAT = "[serial-worker] %(levelname)s %(message)s"


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Calling it again only updates the level, so the entry point and tests can
    both use it without stacking handlers.
    """
    logger = logging.getLogger(LOGGER_NAME)
    resolved = level if level is not None else get_settings().log_level
    logger.setLevel(resolved)

    if not any(getattr(handler, "_serial_worker", False) for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._serial_worker = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
