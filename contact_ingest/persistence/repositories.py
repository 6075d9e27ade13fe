"""Data access for stored contacts.

Repositories take an open SQLAlchemy session and return domain models,
never ORM objects.
"""

from typing import Callable, ContextManager, Dict, List, NamedTuple, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from contact_ingest.domain.models import ContactRecord
from contact_ingest.logging import get_logger

from .database import get_session
from .exceptions import DataIntegrityError, PersistenceError
from .schema import ContactModel, record_key

logger = get_logger(__name__, component="database")


class SaveBatchResult(NamedTuple):
    inserted: int
    updated: int


class ContactRepository:
    """Repository for a user's stored contacts."""

    def __init__(self, session: Session):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def list_for_user(self, user_id: str) -> List[ContactRecord]:
        """Load every contact owned by a user, oldest first.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(ContactModel)
                .where(ContactModel.user_id == user_id)
                .order_by(ContactModel.created_at, ContactModel.id)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error loading contacts for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to load contacts: {e}") from e

    def get_by_record(self, user_id: str, record: ContactRecord) -> Optional[ContactRecord]:
        """Find the stored contact sharing a record's dedup key."""
        try:
            model = self._find(user_id, record_key(record))
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving contact for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve contact: {e}") from e

    def count_for_user(self, user_id: str) -> int:
        try:
            stmt = select(func.count()).select_from(ContactModel).where(ContactModel.user_id == user_id)
            return self.session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count contacts: {e}") from e

    def save_batch(self, user_id: str, records: Sequence[ContactRecord]) -> SaveBatchResult:
        """Insert new contacts and update stored ones, matched by dedup key.

        The records are expected to be the accepted output of one merge, so
        no two of them share a key.

        Args:
            user_id: Owning user
            records: Merged contacts to store

        Returns:
            SaveBatchResult with inserted and updated counts

        Raises:
            DataIntegrityError: If two records collide on the same key
            PersistenceError: If database error occurs
        """
        if not user_id:
            raise PersistenceError("user_id is required to store contacts")

        inserted = updated = 0
        try:
            keys = [record_key(record) for record in records]
            stored: Dict[str, ContactModel] = {}
            if keys:
                stmt = select(ContactModel).where(
                    ContactModel.user_id == user_id, ContactModel.dedup_key.in_(keys)
                )
                stored = {model.dedup_key: model for model in self.session.execute(stmt).scalars()}

            for key, record in zip(keys, records):
                model = stored.get(key)
                if model is not None:
                    model.apply(record)
                    updated += 1
                else:
                    model = ContactModel.from_domain(record, user_id)
                    self.session.add(model)
                    stored[key] = model
                    inserted += 1

            self.session.flush()

        except IntegrityError as e:
            logger.error(
                f"Integrity error storing contacts for user {user_id}: {e}",
                extra={"event": "database.contacts.integrity_error"},
            )
            raise DataIntegrityError(f"Contact batch violates a constraint: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error storing contacts for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to store contacts: {e}") from e

        logger.info(
            f"Stored {len(records)} contacts",
            extra={
                "event": "database.contacts.saved",
                "user_id": user_id,
                "inserted": inserted,
                "updated": updated,
            },
        )
        return SaveBatchResult(inserted=inserted, updated=updated)

    def delete_for_user(self, user_id: str) -> int:
        """Delete all contacts of a user.

        Returns:
            Number of deleted contacts
        """
        try:
            result = self.session.execute(delete(ContactModel).where(ContactModel.user_id == user_id))
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error deleting contacts for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete contacts: {e}") from e

    def _find(self, user_id: str, key: str) -> Optional[ContactModel]:
        stmt = select(ContactModel).where(ContactModel.user_id == user_id, ContactModel.dedup_key == key)
        return self.session.execute(stmt).scalar_one_or_none()


class RepositoryContactSink:
    """Contact sink that stores accepted records for one user.

    Each persist() call runs in its own transaction, so a session's records
    become visible all at once or not at all.
    """

    def __init__(
        self,
        user_id: str,
        session_factory: Callable[[], ContextManager[Session]] = get_session,
    ):
        if not user_id:
            raise ValueError("user_id cannot be empty")
        self.user_id = user_id
        self._session_factory = session_factory
        self.last_result: Optional[SaveBatchResult] = None

    def persist(self, records: Sequence[ContactRecord]) -> SaveBatchResult:
        with self._session_factory() as session:
            self.last_result = ContactRepository(session).save_batch(self.user_id, records)
        return self.last_result

    def load_existing(self) -> List[ContactRecord]:
        """Contacts already stored for the user, for use as a merge's existing set."""
        with self._session_factory() as session:
            return ContactRepository(session).list_for_user(self.user_id)
