"""Field validators for names, emails, phones and tags."""

from .fields import (
    EMAIL_PATTERN,
    FieldResult,
    is_email_shaped,
    normalize_tags,
    validate_email,
    validate_name,
    validate_phone,
)

__all__ = [
    "EMAIL_PATTERN",
    "FieldResult",
    "is_email_shaped",
    "validate_name",
    "validate_email",
    "validate_phone",
    "normalize_tags",
]
