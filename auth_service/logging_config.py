"""Process-wide logging configuration."""

from __future__ import annotations

import logging.config

from .config import Settings

# Libraries that are noisy at INFO
QUIET_LOGGERS = ("psycopg", "psycopg.pool", "httpx", "httpcore")


def configure_logging(settings: Settings) -> None:
    """Route all service logs to the console at ``settings.log_level``."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": f"%(asctime)s [{settings.app_name}] %(levelname)s %(name)s: %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "auth_service": {"level": settings.log_level, "handlers": ["console"], "propagate": False},
                **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
            },
        }
    )
