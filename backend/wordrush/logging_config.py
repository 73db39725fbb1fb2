"""Logging setup shared by the server, the turn engine and the timers."""

from __future__ import annotations

import logging
from logging.config import dictConfig

BASE_LOGGER_NAME = "wordrush"


def configure_logging(level: int | str = "INFO") -> None:
    """Configure project-wide logging using :func:`logging.config.dictConfig`."""

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s [%(levelname)s] %(name)s %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                }
            },
            "loggers": {
                BASE_LOGGER_NAME: {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                }
            },
        }
    )


def get_logger(name: str) -> logging.Logger:
    """Return a logger within the project namespace."""

    if name.startswith(BASE_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{BASE_LOGGER_NAME}.{name}")
