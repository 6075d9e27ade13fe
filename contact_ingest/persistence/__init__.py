"""Persistence layer for stored contacts.

Example:
    >>> from contact_ingest.persistence import init_database, get_session, ContactRepository
    >>> init_database("sqlite:///./data/contacts.db")
    >>> with get_session() as session:
    ...     existing = ContactRepository(session).list_for_user("user-1")
"""

from .database import close_database, get_engine, get_session, init_database, is_initialized
from .exceptions import DatabaseConnectionError, DataIntegrityError, PersistenceError
from .repositories import ContactRepository, RepositoryContactSink, SaveBatchResult
from .schema import Base, ContactModel, create_schema

__all__ = [
    "init_database",
    "get_session",
    "get_engine",
    "close_database",
    "is_initialized",
    "ContactRepository",
    "RepositoryContactSink",
    "SaveBatchResult",
    "Base",
    "ContactModel",
    "create_schema",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
]
