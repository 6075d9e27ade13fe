"""Import session controller.

Drives one import at a time through Parsing, Validating and Reporting:

    Idle -> Parsing -> Validating -> Reporting -> (Idle | Failed)

Reading the source and handing off to the sink are the only steps that
await. Normalization and merge run synchronously over the fully
materialized rows, and the sink sees the accepted records exactly once,
only after the merge has finished. A sink whose persist is not a
coroutine function is called in a worker thread.
"""

import asyncio
import inspect
from typing import Callable, List, Optional, Sequence
from uuid import uuid4

from contact_ingest.adapters.exceptions import AdapterError
from contact_ingest.adapters.factory import get_adapter
from contact_ingest.config.models import AppConfig
from contact_ingest.domain.models import ContactRecord, ImportReport, NormalizedCandidate, RawRow
from contact_ingest.logging import get_logger
from contact_ingest.logging.context import log_context
from contact_ingest.merge.engine import merge
from contact_ingest.normalization.service import RecordNormalizer
from contact_ingest.utils.timestamps import utc_now

from .exceptions import ContactHandoffError
from .models import (
    ContactSink,
    ImportOutcome,
    ImportProgress,
    ImportSource,
    SessionState,
    SessionStatus,
)

logger = get_logger(__name__, component="session")

ProgressCallback = Callable[[ImportProgress], None]


class _SessionCancelled(Exception):
    pass


class ImportSessionController:
    """
    Runs import sessions for one user.

    Only one session is active at a time; a second start_import() while a
    session is in flight returns a BUSY outcome instead of queuing.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        sink: Optional[ContactSink] = None,
        on_progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize the controller.

        Args:
            config: Application configuration (defaults when omitted)
            sink: Receives accepted records of every completed session
            on_progress: Called with an ImportProgress after each validated row
        """
        self.config = config or AppConfig()
        self.sink = sink
        self.on_progress = on_progress
        self._state = SessionState.IDLE
        self._progress = ImportProgress()
        self._parse_task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self._last_error: Optional[BaseException] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def progress(self) -> ImportProgress:
        return self._progress

    @property
    def last_error(self) -> Optional[BaseException]:
        """Error that failed the most recent session, if it failed."""
        return self._last_error

    @property
    def is_active(self) -> bool:
        return self._state in (SessionState.PARSING, SessionState.VALIDATING, SessionState.REPORTING)

    async def start_import(
        self,
        source: ImportSource,
        existing: Optional[Sequence[ContactRecord]] = None,
    ) -> ImportOutcome:
        """
        Run one import session to completion.

        Args:
            source: What to import
            existing: Contacts already stored for the user; duplicates of
                these are merged instead of created

        Returns:
            ImportOutcome. Adapter and sink failures are reported as a
            FAILED outcome rather than raised.
        """
        session_id = uuid4().hex
        started_at = utc_now()

        if self.is_active:
            with log_context(session_id=session_id):
                logger.warning(
                    "Import rejected: another session is in progress",
                    extra={"event": "session.import.busy", "state": self._state.value},
                )
            return ImportOutcome(
                session_id=session_id,
                status=SessionStatus.BUSY,
                started_at=started_at,
                finished_at=utc_now(),
            )

        # A new session never inherits anything from the previous one
        self._state = SessionState.PARSING
        self._progress = ImportProgress()
        self._cancel_requested = False
        self._last_error = None

        try:
            adapter = get_adapter(source.kind, self.config.ingest)
        except AdapterError as e:
            return self._fail(session_id, started_at, e)

        source_tag = adapter.source_tag(source.label)

        with log_context(session_id=session_id, source_kind=source.kind.value, source_tag=source_tag):
            logger.info(
                "Import session started",
                extra={"event": "session.import.started", "source_filename": source.filename},
            )

            try:
                rows = await self._parse(adapter, source)

                self._state = SessionState.VALIDATING
                candidates = self._validate(rows, source_tag)

                self._state = SessionState.REPORTING
                report = merge(
                    candidates,
                    existing=existing,
                    policy=self.config.merge.scalar_policy,
                )
                await self._handoff(report)

            except _SessionCancelled:
                return self._cancelled(session_id, started_at)
            except (AdapterError, ContactHandoffError) as e:
                return self._fail(session_id, started_at, e)
            except Exception as e:
                logger.error(
                    f"Unexpected error during import: {e}",
                    extra={"event": "session.import.error", "error_type": type(e).__name__},
                    exc_info=True,
                )
                return self._fail(session_id, started_at, e)
            except BaseException:
                # Outer task cancelled or interpreter shutting down
                self._state = SessionState.IDLE
                self._progress = ImportProgress()
                raise

            self._state = SessionState.IDLE
            finished_at = utc_now()
            logger.info(
                f"Import session completed: {report.summary()}",
                extra={
                    "event": "session.import.completed",
                    "total": report.total,
                    "valid": report.valid,
                    "invalid": report.invalid,
                    "duplicates_collapsed": report.duplicates_collapsed,
                    "matched_existing": report.matched_existing,
                    "accepted": len(report.accepted),
                    "duration_seconds": round((finished_at - started_at).total_seconds(), 3),
                },
            )
            return ImportOutcome(
                session_id=session_id,
                status=SessionStatus.COMPLETED,
                report=report,
                started_at=started_at,
                finished_at=finished_at,
            )

    def cancel(self) -> bool:
        """
        Discard the session in flight.

        Rows read so far are dropped and the sink is never called. Has no
        effect once the session has reached Reporting.

        Returns:
            True if a session was cancelled
        """
        if self._state not in (SessionState.PARSING, SessionState.VALIDATING):
            return False

        self._cancel_requested = True
        if self._parse_task is not None and not self._parse_task.done():
            self._parse_task.cancel()

        logger.info(
            "Import session cancellation requested",
            extra={"event": "session.import.cancel_requested", "state": self._state.value},
        )
        return True

    def reset(self) -> None:
        """
        Return a failed controller to Idle.

        Raises:
            RuntimeError: If a session is still in flight
        """
        if self.is_active:
            raise RuntimeError(f"Cannot reset while a session is {self._state.value}")
        self._state = SessionState.IDLE
        self._progress = ImportProgress()
        self._last_error = None

    async def _parse(self, adapter, source: ImportSource) -> List[RawRow]:
        self._parse_task = asyncio.create_task(adapter.parse(source.payload))
        try:
            rows = await self._parse_task
        except asyncio.CancelledError:
            if self._cancel_requested:
                raise _SessionCancelled()
            raise
        finally:
            self._parse_task = None

        if self._cancel_requested:
            raise _SessionCancelled()

        logger.debug(
            f"Source yielded {len(rows)} rows",
            extra={"event": "session.parse.completed", "row_count": len(rows)},
        )
        return rows

    def _validate(self, rows: List[RawRow], source_tag: str) -> List[NormalizedCandidate]:
        normalizer = RecordNormalizer(source_tag)
        candidates: List[NormalizedCandidate] = []
        valid = invalid = 0

        for row_number, row in enumerate(rows, start=1):
            if self._cancel_requested:
                raise _SessionCancelled()

            candidate = normalizer.normalize(row, row_number)
            candidates.append(candidate)
            if candidate.valid:
                valid += 1
            else:
                invalid += 1

            self._progress = ImportProgress(rows_seen=row_number, valid=valid, invalid=invalid)
            if self.on_progress is not None:
                self.on_progress(self._progress)

        if self._cancel_requested:
            raise _SessionCancelled()
        return candidates

    async def _handoff(self, report: ImportReport) -> None:
        if self.sink is None:
            return

        records = list(report.accepted)
        try:
            persist = self.sink.persist
            if inspect.iscoroutinefunction(persist):
                await persist(records)
            else:
                # Blocking sinks run in a worker thread
                result = await asyncio.to_thread(persist, records)
                if inspect.isawaitable(result):
                    await result
        except Exception as e:
            logger.error(
                f"Contact sink rejected {len(records)} records: {e}",
                extra={
                    "event": "session.handoff.failed",
                    "record_count": len(records),
                    "error_type": type(e).__name__,
                },
            )
            raise ContactHandoffError(f"Failed to hand off {len(records)} contacts: {e}") from e

        logger.debug(
            f"Handed off {len(records)} contacts",
            extra={"event": "session.handoff.completed", "record_count": len(records)},
        )

    def _fail(self, session_id: str, started_at, error: BaseException) -> ImportOutcome:
        self._state = SessionState.FAILED
        self._progress = ImportProgress()
        self._last_error = error

        logger.error(
            f"Import session failed: {error}",
            extra={"event": "session.import.failed", "error_type": type(error).__name__},
        )
        return ImportOutcome(
            session_id=session_id,
            status=SessionStatus.FAILED,
            error=error,
            started_at=started_at,
            finished_at=utc_now(),
        )

    def _cancelled(self, session_id: str, started_at) -> ImportOutcome:
        self._state = SessionState.IDLE
        self._progress = ImportProgress()
        self._cancel_requested = False

        logger.info("Import session cancelled", extra={"event": "session.import.cancelled"})
        return ImportOutcome(
            session_id=session_id,
            status=SessionStatus.CANCELLED,
            started_at=started_at,
            finished_at=utc_now(),
        )
