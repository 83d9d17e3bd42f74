"""
Event Journal — SQLAlchemy models for the append-only notification record.

Every notification emitted by the registry is written here as one row.
Rows are never updated or deleted. Each row stores the SHA-256 hash of
(previous_hash || canonical_json(fields)), so any retroactive alteration
is detectable by re-walking the chain.
"""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for journal models."""
    pass


class JournalEntryDB(Base):
    """A single journaled registry notification."""

    __tablename__ = "journal_entries"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Chain ordering
    sequence_number = Column(
        Integer, nullable=False, unique=True, index=True,
        comment="Monotonically increasing sequence number",
    )
    event_sequence = Column(
        Integer, nullable=True,
        comment="Sequence number assigned by the in-process event bus",
    )

    # Hash chain
    previous_hash = Column(String(64), nullable=False)
    entry_hash = Column(String(64), nullable=False, unique=True)

    timestamp = Column(DateTime(timezone=True), nullable=False, default=func.now())

    # Notification
    event_type = Column(String(50), nullable=False, index=True)
    caller = Column(String(200), nullable=False)
    subject_id = Column(String(200), nullable=True)
    agency_address = Column(String(200), nullable=True)
    payload = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_journal_subject", "subject_id"),
        Index("ix_journal_agency", "agency_address"),
    )

    def __repr__(self) -> str:
        return (
            f"<JournalEntry seq={self.sequence_number} "
            f"type={self.event_type} hash={self.entry_hash[:12]}...>"
        )
