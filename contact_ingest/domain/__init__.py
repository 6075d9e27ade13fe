"""Domain models for the contact ingestion pipeline."""

from .models import (
    ContactRecord,
    ImportReport,
    IssueReason,
    NormalizedCandidate,
    RawRow,
    SourceKind,
    ValidationIssue,
)

__all__ = [
    "RawRow",
    "SourceKind",
    "IssueReason",
    "ValidationIssue",
    "NormalizedCandidate",
    "ContactRecord",
    "ImportReport",
]
