"""Masking helpers for personal data that appears in log records."""

import logging
from typing import Any


def mask_email(value: Any) -> str:
    """Mask the local part of an email address for logging.

    Keeps the first character of the local part and the whole domain so that
    operators can still spot domain-level problems.

    Examples:
        >>> mask_email("alice@example.com")
        'a***@example.com'
        >>> mask_email(None)
        ''
    """
    if not isinstance(value, str) or not value:
        return ""

    local, sep, domain = value.partition("@")
    if not sep:
        return "***"

    return f"{local[:1]}***@{domain}"


def mask_phone(value: Any) -> str:
    """Mask all but the last four characters of a phone number.

    Examples:
        >>> mask_phone("+1-555-0100")
        '***0100'
    """
    if not isinstance(value, str) or not value:
        return ""

    if len(value) <= 4:
        return "***"

    return f"***{value[-4:]}"


# Extra fields that hold contact details, with the mask applied to each
PII_FIELDS = {
    "email": mask_email,
    "phone": mask_phone,
}


class ContactRedactionFilter(logging.Filter):
    """Mask contact details passed through ``extra`` before they are emitted.

    Call sites are expected to mask emails and phone numbers themselves; this
    filter catches the ones that slip through. Both masks are idempotent, so
    already-masked values pass unchanged.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for field, mask in PII_FIELDS.items():
            value = getattr(record, field, None)
            if isinstance(value, str) and value:
                setattr(record, field, mask(value))
        return True
