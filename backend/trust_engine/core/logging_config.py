"""
Logging for the Trust Engine API.

Production writes one JSON object per line, development a readable line.
Records carry the request correlation ID and, when written through a
ModerationLogAdapter, the report and accounts the operation acts on, so one
review can be followed from the admin request to the enforcement log line.

Call setup_logging() once at app startup (in lifespan).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

from trust_engine.core.config import get_settings

# Entities a moderation log line can be bound to, in display order
MODERATION_FIELDS = ("report_id", "reporter_id", "admin_id", "user_id")

# Request fields a caller may pass via extra=
REQUEST_FIELDS = ("path", "method", "status_code")

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "hpack", "h2", "h11")


def moderation_context(record: logging.LogRecord) -> dict[str, Any]:
    """Moderation fields present on a record, skipping unset ones."""
    context = {}
    for key in MODERATION_FIELDS:
        value = getattr(record, key, None)
        if value is not None:
            context[key] = value
    return context


class ModerationLogAdapter(logging.LoggerAdapter):
    """
    Logger bound to the report / accounts one operation acts on.

    Usage:
        log = ModerationLogAdapter(logger, report_id=report_id, admin_id=admin_id)
        log.info("Report reviewed: action=%s", action.value)

    A per-call `extra=` wins over the bound values. None values are not bound.
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        super().__init__(logger, {k: v for k, v in context.items() if v is not None})

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


class CorrelationIDFilter(logging.Filter):
    """Stamps each record with the correlation ID of the request being served."""

    def filter(self, record: logging.LogRecord) -> bool:
        # Lazy: middleware imports auth, which imports config
        from trust_engine.core.middleware import get_correlation_id

        record.correlation_id = get_correlation_id() or "-"
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Moderation fields are grouped under "context"; request fields stay at
    the top level next to the correlation ID.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        correlation_id = getattr(record, "correlation_id", None)
        if correlation_id and correlation_id != "-":
            log_entry["correlation_id"] = correlation_id
        for key in REQUEST_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        context = moderation_context(record)
        if context:
            log_entry["context"] = context
        return json.dumps(log_entry, default=str)


class ReadableFormatter(logging.Formatter):
    """Development format: the moderation context trails the message as key=value."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s [%(levelname)s] %(name)s [%(correlation_id)s]: %(message)s",
            datefmt="%H:%M:%S",
        )

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = moderation_context(record)
        if context:
            line += " | " + " ".join(f"{k}={v}" for k, v in context.items())
        return line


def setup_logging(level: Optional[str] = None) -> None:
    """Install the single stdout handler on the root logger."""
    settings = get_settings()
    log_level = level or ("DEBUG" if settings.debug else "INFO")

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIDFilter())
    handler.setFormatter(ReadableFormatter() if settings.debug else JSONFormatter())
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
