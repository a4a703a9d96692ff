"""Logging configuration.

Plain text by default; JSON lines (python-json-logger) when ``LOG_JSON`` is set.
"""

from __future__ import annotations

import logging.config

PACKAGE_LOGGER = __name__.rpartition(".common.")[0]


def build_logging_config(*, level: str = "INFO", json: bool = False) -> dict:
    formatter = "json" if json else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "loggers": {
            PACKAGE_LOGGER: {
                "handlers": ["console"],
                "level": level.upper(),
                "propagate": False,
            },
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def configure_logging(*, level: str = "INFO", json: bool = False) -> None:
    logging.config.dictConfig(build_logging_config(level=level, json=json))
