"""Core domain models for contact ingestion.

This module defines the data structures that flow through the pipeline:
- RawRow: untyped field mapping produced by a source adapter
- ValidationIssue: why a row (or one of its fields) was rejected
- NormalizedCandidate: schema-checked output of the normalizer
- ContactRecord: accepted, persistence-ready contact
- ImportReport: accept/reject summary for one import session
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from contact_ingest.validation.fields import is_email_shaped

# One input record as produced by a source adapter. Keys are field-name-like
# strings (any case), values are whatever the source carried.
RawRow = Dict[str, Any]


class SourceKind(str, Enum):
    """The closed set of input origins an import session can read from."""

    DELIMITED = "delimited"
    SPREADSHEET = "spreadsheet"
    CONNECTOR = "connector"


class IssueReason(str, Enum):
    """Reason codes attached to a ValidationIssue."""

    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"


_ISSUE_MESSAGES = {
    ("name", IssueReason.REQUIRED): "Name is required",
    ("email", IssueReason.INVALID_FORMAT): "Invalid email format",
}


def _unique_tags(tags) -> Tuple[str, ...]:
    """Collapse a tag sequence into an order-preserving tuple without repeats."""
    if isinstance(tags, str):
        tags = [tags]
    seen = {}
    for tag in tags or ():
        if tag and tag not in seen:
            seen[tag] = None
    return tuple(seen)


class ValidationIssue(BaseModel):
    """A single field-level reason a row failed validation."""

    field: str = Field(..., min_length=1, description="Canonical field name (name, email, ...)")
    reason: IssueReason = Field(..., description="Machine-readable reason code")

    model_config = {"frozen": True}

    @property
    def message(self) -> str:
        """Human-readable message for showing the issue to the user."""
        known = _ISSUE_MESSAGES.get((self.field, self.reason))
        if known:
            return known
        return f"{self.field}: {self.reason.value.replace('_', ' ')}"


class NormalizedCandidate(BaseModel):
    """Output of normalizing one RawRow.

    Invariants:
    - ``valid`` is True exactly when ``issues`` is empty
    - a valid candidate has a trimmed, non-empty ``name``
    - ``email``, when present, has the canonical ``local@domain.tld`` shape
    """

    name: str = Field("", description="Trimmed name; empty when the name was rejected")
    email: Optional[str] = Field(None, description="Trimmed email, absent if not supplied or rejected")
    phone: Optional[str] = Field(None, description="Trimmed phone, accepted as-is")
    tags: Tuple[str, ...] = Field(default_factory=tuple, description="Ordered set of tags")
    valid: bool = Field(..., description="True iff the candidate has no issues")
    issues: Tuple[ValidationIssue, ...] = Field(default_factory=tuple)
    source_tag: str = Field(..., min_length=1, description="Where the row came from")

    model_config = {"frozen": True}

    @field_validator("tags", mode="before")
    @classmethod
    def dedupe_tags(cls, v):
        return _unique_tags(v)

    @model_validator(mode="after")
    def check_invariants(self):
        if self.valid != (len(self.issues) == 0):
            raise ValueError("valid must be True exactly when there are no issues")
        if self.valid and (not self.name or self.name != self.name.strip()):
            raise ValueError("a valid candidate needs a trimmed, non-empty name")
        if self.email is not None and not is_email_shaped(self.email):
            raise ValueError(f"email does not have the local@domain.tld shape: {self.email!r}")
        return self


class ContactRecord(BaseModel):
    """Accepted, persistence-ready contact.

    Ownership (the user scope) is stamped by the persistence collaborator,
    not here.
    """

    name: str = Field(..., min_length=1, description="Contact display name")
    email: Optional[str] = Field(None, description="Email address")
    phone: Optional[str] = Field(None, description="Phone number, unvalidated")
    tags: Tuple[str, ...] = Field(default_factory=tuple, description="Tags (set semantics, stable order)")
    provenance: str = Field(..., min_length=1, description="Source tag of the last contributing candidate")

    model_config = {
        "frozen": True,
        "json_schema_extra": {"example": {
            "name": "Alice Example",
            "email": "alice@example.com",
            "phone": "+1-555-0100",
            "tags": ["vip", "newsletter"],
            "provenance": "delimited:contacts.csv",
        }},
    }

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("name cannot be empty or whitespace-only")
        return stripped

    @field_validator("email", "phone")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @field_validator("tags", mode="before")
    @classmethod
    def dedupe_tags(cls, v):
        return _unique_tags(v)


class ImportReport(BaseModel):
    """Summary of one import: counts plus the accepted and rejected rows.

    ``accepted`` holds only records created or touched by this batch. A
    candidate folded into an existing contact counts in ``matched_existing``,
    not in ``duplicates_collapsed``.
    """

    total: int = Field(0, ge=0, description="Candidates seen")
    valid: int = Field(0, ge=0, description="Candidates eligible for acceptance")
    invalid: int = Field(0, ge=0, description="Candidates rejected with issues")
    duplicates_collapsed: int = Field(0, ge=0, description="valid - len(accepted)")
    matched_existing: int = Field(0, ge=0, description="Accepted records merged into an existing contact")
    accepted: Tuple[ContactRecord, ...] = Field(default_factory=tuple)
    rejected: Tuple[NormalizedCandidate, ...] = Field(default_factory=tuple)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_tallies(self):
        if self.valid + self.invalid != self.total:
            raise ValueError("valid + invalid must equal total")
        if self.invalid != len(self.rejected):
            raise ValueError("every invalid candidate must appear in rejected")
        if self.duplicates_collapsed != self.valid - len(self.accepted):
            raise ValueError("duplicates_collapsed must equal valid - len(accepted)")
        return self

    @classmethod
    def empty(cls) -> "ImportReport":
        """Report for a session that produced nothing (failed, cancelled, busy)."""
        return cls()

    def summary(self) -> str:
        """One-line preview text, e.g. 'Parsed 3 contacts. 2 valid, 1 with errors.'"""
        return f"Parsed {self.total} contacts. {self.valid} valid, {self.invalid} with errors."
