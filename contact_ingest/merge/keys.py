"""Dedup key derivation for contacts.

The key decides whether two contacts are the same person. In order of
confidence: the email address, else the (name, phone) pair, else the bare
name. All comparisons are case-insensitive.
"""

import json
from typing import Optional, Tuple

DedupKey = Tuple[str, ...]

EMAIL_KEY = "email"
NAME_PHONE_KEY = "name_phone"
NAME_KEY = "name"


def dedup_key(name: str, email: Optional[str] = None, phone: Optional[str] = None) -> DedupKey:
    """Compute the dedup key for a contact's identifying fields.

    Args:
        name: Trimmed contact name
        email: Email address, or None
        phone: Phone number, or None

    Returns:
        Tuple whose first element names the key kind

    Examples:
        >>> dedup_key("Alice", "Alice@X.com")
        ('email', 'alice@x.com')
        >>> dedup_key("Alice", None, "555-0000")
        ('name_phone', 'alice', '555-0000')
        >>> dedup_key("Alice")
        ('name', 'alice')
    """
    if email:
        return (EMAIL_KEY, email.casefold())
    if phone:
        return (NAME_PHONE_KEY, name.casefold(), phone.casefold())
    return (NAME_KEY, name.casefold())


def encode_dedup_key(key: DedupKey) -> str:
    """Serialize a dedup key into a string suitable for a unique index."""
    return json.dumps(list(key), ensure_ascii=False, separators=(",", ":"))
