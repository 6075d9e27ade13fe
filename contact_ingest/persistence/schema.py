"""Database schema definition and ORM models.

Contacts are stored one row per (user, dedup key). Tags are kept as a JSON
array and timestamps as ISO 8601 UTC strings.
"""

import json
import logging
from typing import Optional
from uuid import uuid4

from sqlalchemy import Column, Index, String, Text, UniqueConstraint
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from contact_ingest.domain.models import ContactRecord
from contact_ingest.merge.keys import dedup_key, encode_dedup_key
from contact_ingest.utils.timestamps import format_timestamp, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

Base = declarative_base()


class ContactModel(Base):
    """ORM model for the contacts table."""

    __tablename__ = "contacts"

    id = Column(String(32), primary_key=True, nullable=False, default=lambda: uuid4().hex)

    # Owner and identity
    user_id = Column(String(255), nullable=False)
    dedup_key = Column(String(1024), nullable=False)

    # Contact details
    name = Column(Text, nullable=False)
    email = Column(String(320), nullable=True)
    phone = Column(String(64), nullable=True)
    tags = Column(Text, nullable=False, default="[]")
    provenance = Column(String(255), nullable=False)

    # Timestamps (stored as ISO 8601 strings)
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "dedup_key", name="uq_contacts_user_dedup_key"),
        Index("idx_contacts_user", "user_id"),
        Index("idx_contacts_email", "email"),
    )

    def to_domain(self) -> ContactRecord:
        """Convert ORM model to domain model."""
        return ContactRecord(
            name=self.name,
            email=self.email,
            phone=self.phone,
            tags=tuple(json.loads(self.tags or "[]")),
            provenance=self.provenance,
        )

    @classmethod
    def from_domain(cls, record: ContactRecord, user_id: str) -> "ContactModel":
        """Create ORM model from domain model, stamped with its owner.

        Args:
            record: Contact to store
            user_id: Owning user

        Returns:
            ContactModel: ORM model instance
        """
        now = format_timestamp(utc_now())
        return cls(
            id=uuid4().hex,
            user_id=user_id,
            dedup_key=record_key(record),
            name=record.name,
            email=record.email,
            phone=record.phone,
            tags=json.dumps(list(record.tags)),
            provenance=record.provenance,
            created_at=now,
            updated_at=now,
        )

    def apply(self, record: ContactRecord) -> None:
        """Overwrite stored fields with a merged record."""
        self.name = record.name
        self.email = record.email
        self.phone = record.phone
        self.tags = json.dumps(list(record.tags))
        self.provenance = record.provenance
        self.updated_at = format_timestamp(utc_now())

    @property
    def created(self):
        return parse_timestamp(self.created_at)


def record_key(record: ContactRecord) -> str:
    """Encoded dedup key of a stored contact."""
    return encode_dedup_key(dedup_key(record.name, record.email, record.phone))


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent).

    Args:
        engine: SQLAlchemy engine instance
    """
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)

        from sqlalchemy import inspect
        inspector = inspect(engine)
        tables = inspector.get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")

    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
