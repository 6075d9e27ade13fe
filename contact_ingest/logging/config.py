"""Logging configuration for the contact ingestion pipeline."""

import json
import logging
import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, TextIO

from contact_ingest.utils.timestamps import format_timestamp

from .context import get_log_context
from .redaction import ContactRedactionFilter

LogFormat = Literal["json", "key-value"]

SERVICE_NAME = "contact-ingest"

# LogRecord attributes that are never emitted as extra fields
_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "asctime",
    "exc_info", "exc_text", "stack_info", "taskName",
})


def _plain_value(value: Any) -> Any:
    """Convert an extra field value into something JSON can carry."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    if isinstance(value, dict):
        return {str(k): _plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain_value(v) for v in value]
    return str(value)


class ContextualFilter(logging.Filter):
    """Filter that enriches log records with static metadata and active context.

    Adds ``service`` and ``environment`` to every record, then copies the
    active log_context() fields (session_id, source_kind, source_tag, ...)
    without overwriting fields passed explicitly through ``extra``.
    """

    def __init__(self, service: str = SERVICE_NAME, environment: str = "local"):
        super().__init__()
        self.service = service
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = self.service
        record.environment = self.environment

        for key, value in get_log_context().items():
            if not hasattr(record, key):
                setattr(record, key, value)

        return True


def _extra_fields(record: logging.LogRecord, skip: frozenset = _RECORD_ATTRS):
    """Yield the (key, value) pairs a record carries beyond the standard attributes."""
    for key, value in record.__dict__.items():
        if key not in skip and not key.startswith("_"):
            yield key, value


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    The keys timestamp, level, logger and message come first; extra fields
    and context follow in insertion order.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_obj: Dict[str, Any] = {
            "timestamp": format_timestamp(created),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_obj.update((key, _plain_value(value)) for key, value in _extra_fields(record))

        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, ensure_ascii=False)


class KeyValueFormatter(logging.Formatter):
    """Human-readable formatter with sorted ``key=value`` extras.

    Produces lines such as::

        2025-11-04T10:30:00 INFO     contact_ingest.pipeline.controller | Import session completed event=session.import.completed total=3
    """

    SKIP_ATTRS = _RECORD_ATTRS | {"service", "environment"}

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        pairs = sorted(_extra_fields(record, self.SKIP_ATTRS))
        if not pairs:
            return base
        return base + " " + " ".join(f"{key}={self._format_value(value)}" for key, value in pairs)

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        plain = _plain_value(value)
        if isinstance(plain, (list, dict)):
            return json.dumps(plain, ensure_ascii=False)
        text = str(plain)
        if any(ch in text for ch in ' =,'):
            return f'"{text}"'
        return text


_FORMATTERS = {
    "json": lambda: JSONFormatter(),
    "key-value": lambda: KeyValueFormatter(
        "%(asctime)s %(levelname)-8s %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    ),
}


def configure_logging(
    level: str = "INFO",
    format_type: LogFormat = "key-value",
    environment: str = "local",
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Install a single stream handler on the root logger.

    The handler enriches records with the session context and masks contact
    details before formatting. Calling this again replaces the handler.

    Args:
        level: Logging level name, case-insensitive
        format_type: 'json' for one JSON object per line, 'key-value' for
            human-readable lines
        environment: Deployment label stamped on every record
        stream: Output stream (default: stdout)

    Returns:
        The installed handler

    Raises:
        ValueError: If level or format_type is unknown
    """
    level_name = str(level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    formatter_factory = _FORMATTERS.get(format_type)
    if formatter_factory is None:
        raise ValueError(
            f"Invalid log format: {format_type}. Must be one of: {', '.join(_FORMATTERS)}"
        )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter_factory())
    handler.addFilter(ContextualFilter(service=SERVICE_NAME, environment=environment))
    handler.addFilter(ContactRedactionFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric_level)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={
            "event": "logging.configured",
            "component": "logging",
            "log_level": level_name,
            "log_format": format_type,
        },
    )
    return handler
