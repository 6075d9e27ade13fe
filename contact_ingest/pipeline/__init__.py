"""Import session orchestration: parse, validate, merge and hand off."""

from .controller import ImportSessionController
from .exceptions import ContactHandoffError
from .manual import MANUAL_SOURCE_TAG, submit_manual_entry
from .models import (
    ContactSink,
    ImportOutcome,
    ImportProgress,
    ImportSource,
    SessionState,
    SessionStatus,
)

__all__ = [
    "ImportSessionController",
    "ImportSource",
    "ImportOutcome",
    "ImportProgress",
    "SessionState",
    "SessionStatus",
    "ContactSink",
    "ContactHandoffError",
    "submit_manual_entry",
    "MANUAL_SOURCE_TAG",
]
