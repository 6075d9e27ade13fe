"""Field-level validation for contact data.

Each function classifies one raw field value. They are pure and total: any
input, including wrong types, yields a result and never raises.
"""

import re
from typing import Any, NamedTuple, Optional, Tuple

# local@domain.tld with no whitespace and a single '@'
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class FieldResult(NamedTuple):
    """Outcome of validating a single field.

    Attributes:
        value: Normalized value (None means absent)
        ok: False when the field must be reported as an issue
    """

    value: Optional[str]
    ok: bool


def is_email_shaped(value: Any) -> bool:
    """Return True if value is a string of the form local@domain.tld."""
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def validate_name(raw: Any) -> FieldResult:
    """Validate the required name field.

    Args:
        raw: Raw cell value

    Returns:
        FieldResult with the trimmed name. ``ok`` is False for non-string
        input and for names that are empty after trimming (value is then "").
    """
    if not isinstance(raw, str):
        return FieldResult("", False)

    name = raw.strip()
    return FieldResult(name, bool(name))


def validate_email(raw: Any) -> FieldResult:
    """Validate the optional email field.

    Email is optional, so missing or blank input is valid-but-absent.
    Anything else must match EMAIL_PATTERN after trimming.

    Args:
        raw: Raw cell value

    Returns:
        FieldResult(None, True) for absent input, FieldResult(email, True)
        for a well-formed address, otherwise ``ok`` is False. A rejected
        string keeps its trimmed value so callers can show what was typed.
    """
    if raw is None:
        return FieldResult(None, True)

    if not isinstance(raw, str):
        return FieldResult(None, False)

    email = raw.strip()
    if not email:
        return FieldResult(None, True)

    return FieldResult(email, bool(EMAIL_PATTERN.match(email)))


def validate_phone(raw: Any) -> FieldResult:
    """Accept the optional phone field as-is.

    Phone numbers are never rejected. Strings are trimmed; numeric cells
    (common in spreadsheets) are rendered without a trailing ``.0``.
    Blank or unusable input is absent.

    Args:
        raw: Raw cell value

    Returns:
        FieldResult whose ``ok`` is always True
    """
    if isinstance(raw, bool):
        return FieldResult(None, True)

    if isinstance(raw, int):
        return FieldResult(str(raw), True)

    if isinstance(raw, float):
        if raw != raw:  # NaN
            return FieldResult(None, True)
        text = str(int(raw)) if raw.is_integer() else str(raw)
        return FieldResult(text, True)

    if isinstance(raw, str):
        phone = raw.strip()
        return FieldResult(phone or None, True)

    return FieldResult(None, True)


def normalize_tags(raw: Any) -> Tuple[str, ...]:
    """Turn a tag cell into an ordered set of tags.

    Accepts a comma-delimited string ("vip, newsletter") or a list/tuple of
    entries. Empty and falsy entries are dropped, repeats keep their first
    position. Any other input type yields no tags.

    Examples:
        >>> normalize_tags("vip, newsletter,,vip")
        ('vip', 'newsletter')
        >>> normalize_tags(["vip", "", None, "prospect"])
        ('vip', 'prospect')
        >>> normalize_tags(42)
        ()
    """
    if isinstance(raw, str):
        parts = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        parts = [entry if isinstance(entry, str) else str(entry) for entry in raw if entry]
    else:
        return ()

    tags = {}
    for part in parts:
        tag = part.strip()
        if tag and tag not in tags:
            tags[tag] = None

    return tuple(tags)
