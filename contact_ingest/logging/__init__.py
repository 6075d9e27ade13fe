"""Structured logging for the contact ingestion pipeline.

Every module obtains its logger through get_logger() so that records carry a
``component`` field (adapter, normalization, merge, session, ...). Contact
emails and phone numbers are personal data and are only logged through the
masking helpers in ``redaction``.
"""

import logging
from typing import Optional, Union

from .redaction import mask_email, mask_phone


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges the default component with per-call extra fields."""

    def process(self, msg, kwargs):
        """Merge adapter extra with call extra; call-level fields take precedence."""
        extra = kwargs.get("extra", {})
        kwargs["extra"] = {**self.extra, **extra}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger with an optional default component field.

    Args:
        name: Logger name (typically __name__)
        component: Optional component identifier to inject into all logs

    Returns:
        Logger or ComponentLoggerAdapter instance

    Example:
        >>> logger = get_logger(__name__, component="session")
        >>> logger.info("Import started", extra={"event": "session.import.started"})
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger


__all__ = ["ComponentLoggerAdapter", "get_logger", "mask_email", "mask_phone"]
