"""Record normalization: RawRow -> NormalizedCandidate.

normalize() is the pure core: it looks up the recognised fields of a row
case-insensitively, runs the field validators and collects one
ValidationIssue per rejected field. RecordNormalizer wraps it for batch use
with structured logging.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from contact_ingest.domain.models import (
    IssueReason,
    NormalizedCandidate,
    RawRow,
    ValidationIssue,
)
from contact_ingest.logging import get_logger, mask_email
from contact_ingest.validation.fields import (
    normalize_tags,
    validate_email,
    validate_name,
    validate_phone,
)

logger = get_logger(__name__, component="normalization")

RECOGNIZED_FIELDS = ("name", "email", "phone", "tags")


def canonical_fields(row: Any) -> Dict[str, Any]:
    """Extract the recognised fields of a row.

    Header names are matched case-insensitively after trimming; unrecognised
    keys are ignored. When a row carries the same field twice under different
    spellings ("Email" and "email"), the first one wins. Anything that is not
    a mapping yields an empty dict.

    Args:
        row: Raw row from a source adapter

    Returns:
        Dict keyed by the canonical field names present in the row
    """
    if not isinstance(row, Mapping):
        return {}

    fields: Dict[str, Any] = {}
    for key, value in row.items():
        if not isinstance(key, str):
            continue
        canonical = key.strip().lower()
        if canonical in RECOGNIZED_FIELDS and canonical not in fields:
            fields[canonical] = value

    return fields


def normalize(row: RawRow, source_tag: str) -> NormalizedCandidate:
    """Normalize one raw row into a candidate contact.

    Name and email are the only fields that can produce issues; a bad email
    does not stop the other fields from being normalized. Identical input
    always produces an equal candidate.

    Args:
        row: Raw row from a source adapter (missing keys, extra keys and wrong
            value types are all tolerated)
        source_tag: Provenance label stamped onto the candidate

    Returns:
        NormalizedCandidate, valid exactly when no issue was recorded
    """
    fields = canonical_fields(row)
    issues: List[ValidationIssue] = []

    name = validate_name(fields.get("name"))
    if not name.ok:
        issues.append(ValidationIssue(field="name", reason=IssueReason.REQUIRED))

    email = validate_email(fields.get("email"))
    if not email.ok:
        issues.append(ValidationIssue(field="email", reason=IssueReason.INVALID_FORMAT))

    phone = validate_phone(fields.get("phone"))

    return NormalizedCandidate(
        name=name.value or "",
        email=email.value if email.ok else None,
        phone=phone.value,
        tags=normalize_tags(fields.get("tags")),
        valid=not issues,
        issues=tuple(issues),
        source_tag=source_tag,
    )


class RecordNormalizer:
    """Normalizes the rows of one source, logging each rejection.

    Attributes:
        source_tag: Provenance label stamped onto every candidate
    """

    def __init__(self, source_tag: str, logger_instance: Optional[logging.Logger] = None):
        """Initialize RecordNormalizer.

        Args:
            source_tag: Provenance label (e.g. "delimited:contacts.csv")
            logger_instance: Logger instance (defaults to module logger)
        """
        if not source_tag or not source_tag.strip():
            raise ValueError("source_tag cannot be empty")
        self.source_tag = source_tag.strip()
        self.logger = logger_instance or logger

    def normalize(self, row: RawRow, row_number: Optional[int] = None) -> NormalizedCandidate:
        """Normalize a single row and log the outcome.

        Args:
            row: Raw row from a source adapter
            row_number: 1-based data row number, for log correlation only

        Returns:
            NormalizedCandidate for the row
        """
        candidate = normalize(row, self.source_tag)

        if candidate.valid:
            self.logger.debug(
                "Row normalized",
                extra={
                    "event": "normalization.row.accepted",
                    "row_number": row_number,
                    "email": mask_email(candidate.email),
                },
            )
        else:
            self.logger.info(
                "Row rejected",
                extra={
                    "event": "normalization.row.rejected",
                    "row_number": row_number,
                    "issues": [f"{issue.field}:{issue.reason.value}" for issue in candidate.issues],
                },
            )

        return candidate

    def process_batch(self, rows: Iterable[RawRow]) -> Iterator[NormalizedCandidate]:
        """Normalize rows lazily, one candidate per row, in input order.

        Args:
            rows: Raw rows from a source adapter

        Yields:
            NormalizedCandidate for every row; bad rows become invalid
            candidates rather than errors
        """
        for row_number, row in enumerate(rows, start=1):
            yield self.normalize(row, row_number=row_number)
