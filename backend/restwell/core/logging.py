"""Centralized logging configuration."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from restwell.core.context import get_request_id, get_user_id

ENGINE_LOGGER = "restwell.services.delta"


class RequestContextFilter(logging.Filter):
    """Add request_id and user_id attributes to log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # pragma: no cover - minimal logic
        record.request_id = get_request_id() or "-"
        record.user_id = get_user_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO", engine_log_level: str | None = None) -> None:
    """Configure application logging once at startup.

    ``engine_log_level`` lets the delta engine's DEBUG traces (fallback and
    conflict suppression) be enabled without turning up the whole app.
    """
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(user_id)s | %(message)s",
                }
            },
            "filters": {
                "request_context": {
                    "()": "restwell.core.logging.RequestContextFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": "DEBUG",
                    "filters": ["request_context"],
                }
            },
            "loggers": {
                ENGINE_LOGGER: {
                    "level": engine_log_level or log_level,
                },
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
