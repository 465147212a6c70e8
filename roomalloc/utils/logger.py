"""Package logging setup."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from roomalloc.utils.config import get_settings


PACKAGE_LOGGER = "roomalloc"
LOG_FORMAT = "%(asctime)s | %(levelname)s | owner=%(owner)s | %(name)s | %(message)s"

_configured = False


class _OwnerFilter(logging.Filter):
    """Stamps each record with the owner scope the process runs under."""

    def __init__(self, owner_id: Optional[str]) -> None:
        super().__init__()
        self._owner = owner_id or "-"

    def filter(self, record: logging.LogRecord) -> bool:
        record.owner = self._owner
        return True


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a stdout handler to the package logger, once per process.

    Only the ``roomalloc`` hierarchy is configured, so uvicorn and other
    libraries keep their own handlers.
    """
    global _configured
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if _configured:
        return package_logger

    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(_OwnerFilter(settings.owner_id))

    package_logger.addHandler(handler)
    package_logger.setLevel((level or settings.log_level).upper())
    package_logger.propagate = False
    _configured = True
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the package hierarchy for ``name``."""
    configure_logging()
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
