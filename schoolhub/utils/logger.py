"""Structured logging with JSON output and context injection.

Every record gets the request context (request_id, user_id, user_email,
action) and the OpenTelemetry trace context (trace_id, span_id) attached by
``ContextInjectionFilter``. Production output is one JSON object per line;
development output is coloured plain text.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from schoolhub.config import Settings, settings
from schoolhub.utils.context import get_context, get_trace_context

CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "user_email",
    "action",
    "trace_id",
    "span_id",
)

# Never written to a log record, whatever a caller passes in ``extra``
REDACTED_FIELDS = frozenset(
    {"password", "access_token", "refresh_token", "token", "hashed_password"}
)


class ContextInjectionFilter(logging.Filter):
    """Copy the request and trace context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.__dict__.update(get_context())
        record.__dict__.update(get_trace_context())
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding level, logger name and context fields."""

    def add_fields(
        self, log_record: dict, record: logging.LogRecord, message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if "timestamp" not in log_record:
            log_record["timestamp"] = record.created

        log_record["level"] = record.levelname
        log_record["logger"] = record.name

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_record[field] = value

        for field in REDACTED_FIELDS & log_record.keys():
            log_record[field] = "[redacted]"


class ColoredConsoleFormatter(logging.Formatter):
    """Plain-text formatter with the level name coloured by severity."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        # Other handlers share the record; colour a copy.
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


# Third-party loggers capped regardless of LOG_LEVEL
QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "opentelemetry": logging.WARNING,
    "celery.beat": logging.INFO,
}


def build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(message)s", timestamp=True
        )
    return ColoredConsoleFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def setup_logging(config: Optional[Settings] = None) -> None:
    """Send every record to stdout, formatted per ``LOG_FORMAT``.

    Replaces any handlers already on the root logger, so calling it again
    reconfigures instead of duplicating output.
    """
    config = config or settings

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextInjectionFilter())
    handler.setFormatter(build_formatter(config.LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(config.LOG_LEVEL.upper())

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_timer(operation_name: str, logger: Optional[logging.Logger] = None):
    """Log how long the wrapped block took, even when it raises.

    Example:
        with log_timer("admin_seed", logger):
            await seed_admin(session, email, password)
        # {"message": "Operation completed: admin_seed", "duration_ms": 12.3}
    """
    logger = logger or logging.getLogger(__name__)
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.info(
            f"Operation completed: {operation_name}",
            extra={
                "operation": operation_name,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )


def log_auth_event(
    logger: logging.Logger,
    event: str,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Log an authentication event such as ``login.succeeded``.

    Secret-bearing fields are dropped before the record is built.
    """
    extra = {
        key: value
        for key, value in fields.items()
        if key not in REDACTED_FIELDS and value is not None
    }
    extra["auth_event"] = event
    logger.log(level, f"Auth event: {event}", extra=extra)
