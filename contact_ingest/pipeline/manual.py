"""Single-contact manual entry.

The add-contact form goes through the same normalizer and merge engine as
a bulk import, so a typed contact that matches a stored one updates it
instead of creating a duplicate.
"""

from typing import Any, Mapping, Optional, Sequence

from contact_ingest.domain.models import ContactRecord, ImportReport
from contact_ingest.logging import get_logger
from contact_ingest.merge.engine import MergePolicy, merge
from contact_ingest.normalization.service import normalize

logger = get_logger(__name__, component="session")

MANUAL_SOURCE_TAG = "manual"


def submit_manual_entry(
    fields: Mapping[str, Any],
    existing: Optional[Sequence[ContactRecord]] = None,
    policy: MergePolicy = MergePolicy.LAST_WINS,
) -> ImportReport:
    """
    Normalize one typed contact and merge it against the stored set.

    Args:
        fields: Form values (name, email, phone, tags as a comma-separated string)
        existing: Contacts already stored for the user
        policy: Scalar tie-break policy

    Returns:
        ImportReport with total == 1. If the entry is invalid, the report
        holds it in ``rejected`` and accepts nothing.

    Example:
        >>> report = submit_manual_entry({"name": "Ada", "tags": "vip, friends"})
        >>> report.accepted[0].tags
        ('vip', 'friends')
    """
    candidate = normalize(fields, MANUAL_SOURCE_TAG)
    report = merge([candidate], existing=existing, policy=policy)

    logger.info(
        "Manual entry processed",
        extra={
            "event": "session.manual_entry.processed",
            "valid": candidate.valid,
            "matched_existing": report.matched_existing,
            "issues": [issue.message for issue in candidate.issues],
        },
    )
    return report
