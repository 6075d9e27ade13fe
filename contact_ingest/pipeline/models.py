"""Data models for import session tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

from contact_ingest.domain.models import ContactRecord, ImportReport, SourceKind


class SessionState(str, Enum):
    """Lifecycle state of the import session controller."""

    IDLE = "idle"
    PARSING = "parsing"
    VALIDATING = "validating"
    REPORTING = "reporting"
    FAILED = "failed"


class SessionStatus(str, Enum):
    """How an import session ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    BUSY = "busy"
    CANCELLED = "cancelled"


@dataclass
class ImportSource:
    """
    One user-initiated import.

    Attributes:
        kind: Which adapter reads the payload
        payload: Upload bytes, text, path or file handle for file kinds; a
            ContactConnector or a pre-fetched record sequence for connectors
        filename: Original filename, used in provenance tags
    """

    kind: SourceKind
    payload: Any
    filename: Optional[str] = None

    def __post_init__(self):
        self.kind = SourceKind(self.kind)

    @property
    def label(self) -> Optional[str]:
        """Label appended to the source tag (filename or connector platform)."""
        if self.filename:
            return self.filename
        if self.kind == SourceKind.CONNECTOR:
            return getattr(self.payload, "platform", None)
        return None


@dataclass(frozen=True)
class ImportProgress:
    """
    Running tallies for the session in flight.

    Attributes:
        rows_seen: Rows passed through the normalizer so far
        valid: Rows that produced a valid candidate
        invalid: Rows that produced at least one issue
    """

    rows_seen: int = 0
    valid: int = 0
    invalid: int = 0


@dataclass
class ImportOutcome:
    """
    Result of one call to start_import().

    A failed, busy or cancelled outcome always carries an empty report.

    Attributes:
        session_id: Unique identifier for the session
        status: How the session ended
        report: ImportReport for completed sessions
        error: The exception that failed the session, if any
        started_at: UTC timestamp when the session began
        finished_at: UTC timestamp when the session ended
    """

    session_id: str
    status: SessionStatus
    started_at: datetime
    finished_at: datetime
    report: ImportReport = field(default_factory=ImportReport.empty)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


@runtime_checkable
class ContactSink(Protocol):
    """Persistence collaborator receiving the accepted records of a completed session.

    ``persist`` may be a plain or a coroutine function.
    """

    def persist(self, records: Sequence[ContactRecord]) -> Any:
        ...
