"""Centralized logging configuration.

Every record carries the id of the HTTP request being served so a planner
session's generate/accept calls can be followed through the backend and
LLM client logs.
"""
from __future__ import annotations

import logging
from contextvars import ContextVar
from logging.config import dictConfig

request_id_var: ContextVar[str | None] = ContextVar("planner_request_id", default=None)


class RequestIdFilter(logging.Filter):
    """Stamp log records with the active request id ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "planner": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | req=%(request_id)s | %(message)s",
                }
            },
            "filters": {
                "request_id": {"()": "taskpilot.core.logging.RequestIdFilter"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "planner",
                    "level": log_level,
                    "filters": ["request_id"],
                }
            },
            "loggers": {
                # Client libraries log every request at INFO.
                "httpx": {"level": "WARNING"},
                "openai": {"level": "WARNING"},
            },
            "root": {"handlers": ["console"], "level": log_level},
        }
    )

    logging.getLogger(__name__).debug("Planner logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
