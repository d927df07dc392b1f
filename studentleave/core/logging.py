"""
Logging helpers for the Student Leave Management Service.

Every module obtains its logger through ``get_logger(__name__)`` so that
the service-wide format and level are applied in one place.
"""

import logging
import sys

from studentleave.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """
    Configure the root logger for the service.

    Args:
        level: Log level name; defaults to settings.LOG_LEVEL
    """
    global _configured

    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a named logger."""
    return logging.getLogger(name)
