"""Dedup & merge engine.

Folds the normalized candidates of one import batch (optionally on top of
an existing contact set) into the final accepted records and produces the
ImportReport for the batch.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Union

from contact_ingest.domain.models import ContactRecord, ImportReport, NormalizedCandidate
from contact_ingest.logging import get_logger, mask_email

from .keys import DedupKey, dedup_key

logger = get_logger(__name__, component="merge")


class MergePolicy(str, Enum):
    """Tie-break rule for scalar fields (name, email, phone) of duplicates.

    Tags are always unioned regardless of policy.
    """

    LAST_WINS = "last_wins"
    FIRST_WINS = "first_wins"


@dataclass
class _MergedContact:
    """Mutable accumulator for one dedup key while a batch is folded."""

    name: str
    email: Optional[str]
    phone: Optional[str]
    provenance: str
    tags: Dict[str, None] = field(default_factory=dict)
    from_existing: bool = False

    @classmethod
    def start(
        cls, source: Union[NormalizedCandidate, ContactRecord], from_existing: bool = False
    ) -> "_MergedContact":
        provenance = source.provenance if isinstance(source, ContactRecord) else source.source_tag
        return cls(
            name=source.name,
            email=source.email,
            phone=source.phone,
            provenance=provenance,
            tags=dict.fromkeys(source.tags),
            from_existing=from_existing,
        )

    def copy(self) -> "_MergedContact":
        return _MergedContact(
            name=self.name,
            email=self.email,
            phone=self.phone,
            provenance=self.provenance,
            tags=dict(self.tags),
            from_existing=self.from_existing,
        )

    def absorb(self, source: Union[NormalizedCandidate, ContactRecord], policy: MergePolicy) -> None:
        """Fold a later duplicate into this accumulator.

        An absent field on the later source never erases a present value.
        """
        provenance = source.provenance if isinstance(source, ContactRecord) else source.source_tag

        if policy is MergePolicy.LAST_WINS:
            self.name = source.name or self.name
            self.email = source.email or self.email
            self.phone = source.phone or self.phone
            self.provenance = provenance
        else:
            self.email = self.email or source.email
            self.phone = self.phone or source.phone

        for tag in source.tags:
            self.tags.setdefault(tag, None)

    def to_record(self) -> ContactRecord:
        return ContactRecord(
            name=self.name,
            email=self.email,
            phone=self.phone,
            tags=tuple(self.tags),
            provenance=self.provenance,
        )


def merge(
    candidates: Iterable[NormalizedCandidate],
    existing: Optional[Iterable[ContactRecord]] = None,
    policy: MergePolicy = MergePolicy.LAST_WINS,
    logger_instance: Optional[logging.Logger] = None,
) -> ImportReport:
    """Deduplicate and merge a batch of candidates into an ImportReport.

    Only valid candidates can become ContactRecords; invalid ones are copied
    verbatim into ``rejected``. Valid candidates sharing a dedup key are
    merged: scalar fields follow ``policy`` and tags are unioned. Existing
    contacts are treated as occurring before the batch, so with LAST_WINS the
    batch wins scalar ties but existing tags are kept.

    Args:
        candidates: Normalized candidates in input order
        existing: Contacts already stored for the user, if any
        policy: Scalar tie-break rule (default LAST_WINS)
        logger_instance: Logger instance (defaults to module logger)

    Returns:
        ImportReport whose ``accepted`` holds one record per dedup key touched
        by the batch, in order of first appearance
    """
    log = logger_instance or logger

    existing_index: Dict[DedupKey, _MergedContact] = {}
    for record in existing or ():
        key = dedup_key(record.name, record.email, record.phone)
        if key in existing_index:
            existing_index[key].absorb(record, policy)
        else:
            existing_index[key] = _MergedContact.start(record, from_existing=True)

    merged: Dict[DedupKey, _MergedContact] = {}
    rejected: List[NormalizedCandidate] = []
    total = 0
    eligible = 0

    for candidate in candidates:
        total += 1
        if not candidate.valid:
            rejected.append(candidate)
            continue

        eligible += 1
        key = dedup_key(candidate.name, candidate.email, candidate.phone)

        accumulator = merged.get(key)
        if accumulator is not None:
            accumulator.absorb(candidate, policy)
            log.debug(
                "Duplicate candidate merged",
                extra={
                    "event": "merge.duplicate.collapsed",
                    "key_kind": key[0],
                    "email": mask_email(candidate.email),
                },
            )
            continue

        base = existing_index.get(key)
        if base is not None:
            accumulator = base.copy()
            accumulator.absorb(candidate, policy)
        else:
            accumulator = _MergedContact.start(candidate)
        merged[key] = accumulator

    accepted = tuple(accumulator.to_record() for accumulator in merged.values())
    matched_existing = sum(1 for accumulator in merged.values() if accumulator.from_existing)

    report = ImportReport(
        total=total,
        valid=eligible,
        invalid=len(rejected),
        duplicates_collapsed=eligible - len(accepted),
        matched_existing=matched_existing,
        accepted=accepted,
        rejected=tuple(rejected),
    )

    log.info(
        "Merge completed",
        extra={
            "event": "merge.completed",
            "policy": policy.value,
            "total": report.total,
            "valid": report.valid,
            "invalid": report.invalid,
            "accepted": len(report.accepted),
            "duplicates_collapsed": report.duplicates_collapsed,
            "matched_existing": report.matched_existing,
        },
    )

    return report
