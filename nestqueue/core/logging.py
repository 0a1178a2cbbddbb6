"""Logging setup shared by the API and the ticket store."""

from __future__ import annotations

import logging
from logging.config import dictConfig

from nestqueue.core.config import Settings

ROOT_LOGGER_NAME = "nestqueue"


class _BelowLevelFilter(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self._level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self._level


def configure_logging(settings: Settings) -> logging.Logger:
    """Configure console logging and return the application logger.

    Errors go to stderr and everything below ERROR goes to stdout.
    """

    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "below_error": {
                    "()": _BelowLevelFilter,
                    "level": logging.ERROR,
                }
            },
            "formatters": {
                "default": {
                    "format": settings.LOG_FORMAT,
                }
            },
            "handlers": {
                "stdout": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["below_error"],
                    "stream": "ext://sys.stdout",
                    "level": level,
                },
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                    "level": logging.ERROR,
                },
            },
            "loggers": {
                ROOT_LOGGER_NAME: {
                    "handlers": ["stdout", "stderr"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )

    return logging.getLogger(ROOT_LOGGER_NAME)
