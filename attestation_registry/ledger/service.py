"""
Event Journal Service — append-only, hash-chained record of registry notifications.

The journal subscribes to the registry's event bus and persists every
notification in order:
- Append new entries with automatic hash chain computation
- Verify the integrity of the full hash chain
- Query entries by type, subject or recency

The journal is an audit record, not the registry's source of truth. A
failed journal write is logged and does not undo the registry operation.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from attestation_registry.ledger.models import Base, JournalEntryDB
from attestation_registry.registry.schema import RegistryEvent

logger = logging.getLogger(__name__)


GENESIS_HASH = "0" * 64  # The "previous hash" for the first entry in the chain
GENESIS_EVENT_TYPE = "genesis"


class JournalIntegrityError(Exception):
    """Raised when the journal cannot be appended to consistently."""
    pass


def _normalize_timestamp(timestamp: datetime) -> datetime:
    """UTC, without tzinfo; SQLite returns naive datetimes."""
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc).replace(tzinfo=None)
    return timestamp


class EventJournal:
    """
    Persistent journal of registry notifications.

    Usage:
        journal = EventJournal("sqlite:///journal.db")
        journal.initialize()  # Create tables, seed genesis entry
        registry.subscribe(journal.record_event)
    """

    def __init__(self, database_url: str) -> None:
        """
        Initialize the journal service.

        Args:
            database_url: SQLAlchemy connection string (sync driver).
        """
        self.engine = create_engine(database_url, echo=False)
        self.SessionLocal = sessionmaker(bind=self.engine)

    def initialize(self) -> None:
        """Create the schema and seed the genesis entry if missing."""
        Base.metadata.create_all(self.engine)

        with self.SessionLocal() as session:
            existing = session.execute(
                select(JournalEntryDB).where(JournalEntryDB.sequence_number == 0)
            ).scalar_one_or_none()

            if existing is None:
                genesis = self._build_entry(
                    sequence_number=0,
                    previous_hash=GENESIS_HASH,
                    event_type=GENESIS_EVENT_TYPE,
                    caller="system",
                    subject_id=None,
                    agency_address=None,
                    payload={"message": "Genesis of the attestation event journal"},
                    event_sequence=None,
                )
                session.add(genesis)
                session.commit()
                logger.info("Journal genesis created: hash=%s", genesis.entry_hash[:16])

    def record_event(self, event: RegistryEvent) -> None:
        """Event bus subscriber: journal one notification, logging failures."""
        try:
            self.append(event)
        except Exception as e:
            logger.error(
                "Failed to journal event seq=%d type=%s: %s",
                event.sequence_number, event.event_type.value, e,
            )

    def append(self, event: RegistryEvent) -> JournalEntryDB:
        """
        Append a notification to the journal.

        Raises:
            JournalIntegrityError: If the journal has not been initialized.
        """
        with self.SessionLocal() as session:
            last_entry = session.execute(
                select(JournalEntryDB)
                .order_by(JournalEntryDB.sequence_number.desc())
                .limit(1)
            ).scalar_one_or_none()

            if last_entry is None:
                raise JournalIntegrityError(
                    "Cannot append: no genesis entry found. Call initialize() first."
                )

            entry = self._build_entry(
                sequence_number=last_entry.sequence_number + 1,
                previous_hash=last_entry.entry_hash,
                event_type=event.event_type.value,
                caller=event.caller,
                subject_id=event.subject_id,
                agency_address=event.agency_address,
                payload=event.payload,
                event_sequence=event.sequence_number,
                timestamp=event.emitted_at,
            )

            session.add(entry)
            session.commit()
            session.refresh(entry)

            logger.info(
                "Journal entry appended: seq=%d type=%s hash=%s",
                entry.sequence_number, entry.event_type, entry.entry_hash[:16],
            )
            return entry

    def verify_chain(self) -> tuple[bool, int, str]:
        """
        Re-walk the chain from genesis, recomputing every hash.

        Returns:
            Tuple of (is_valid, entries_verified, message).
        """
        with self.SessionLocal() as session:
            entries = session.execute(
                select(JournalEntryDB).order_by(JournalEntryDB.sequence_number.asc())
            ).scalars().all()

            if not entries:
                return False, 0, "No entries found in journal"

            first = entries[0]
            if first.sequence_number != 0:
                return False, 0, f"First entry has sequence {first.sequence_number}, expected 0"
            if first.previous_hash != GENESIS_HASH:
                return False, 0, "Genesis entry has incorrect previous_hash"

            for i, entry in enumerate(entries):
                expected_hash = self._compute_hash(
                    entry_id=entry.id,
                    sequence_number=entry.sequence_number,
                    previous_hash=entry.previous_hash,
                    timestamp=entry.timestamp,
                    event_type=entry.event_type,
                    caller=entry.caller,
                    subject_id=entry.subject_id,
                    agency_address=entry.agency_address,
                    payload=entry.payload,
                )
                if entry.entry_hash != expected_hash:
                    return (
                        False, i,
                        f"Hash mismatch at sequence {entry.sequence_number}: "
                        f"stored={entry.entry_hash[:16]}... "
                        f"computed={expected_hash[:16]}..."
                    )

                if i > 0 and entry.previous_hash != entries[i - 1].entry_hash:
                    return (
                        False, i,
                        f"Chain break at sequence {entry.sequence_number}: "
                        f"previous_hash does not match prior entry's hash"
                    )

            return True, len(entries), f"Chain verified: {len(entries)} entries, integrity intact"

    def get_latest_entries(self, limit: int = 50) -> list[JournalEntryDB]:
        with self.SessionLocal() as session:
            return list(
                session.execute(
                    select(JournalEntryDB)
                    .order_by(JournalEntryDB.sequence_number.desc())
                    .limit(limit)
                ).scalars().all()
            )

    def get_entries_by_type(self, event_type: str, limit: int = 100) -> list[JournalEntryDB]:
        with self.SessionLocal() as session:
            return list(
                session.execute(
                    select(JournalEntryDB)
                    .where(JournalEntryDB.event_type == event_type)
                    .order_by(JournalEntryDB.sequence_number.asc())
                    .limit(limit)
                ).scalars().all()
            )

    def get_entries_for_subject(self, subject_id: str) -> list[JournalEntryDB]:
        """Full notification history of one subject, oldest first."""
        with self.SessionLocal() as session:
            return list(
                session.execute(
                    select(JournalEntryDB)
                    .where(JournalEntryDB.subject_id == subject_id)
                    .order_by(JournalEntryDB.sequence_number.asc())
                ).scalars().all()
            )

    def get_entry_count(self) -> int:
        with self.SessionLocal() as session:
            result = session.execute(select(func.count()).select_from(JournalEntryDB))
            return result.scalar() or 0

    # ── Internal ────────────────────────────────────────────────

    def _build_entry(
        self,
        sequence_number: int,
        previous_hash: str,
        event_type: str,
        caller: str,
        subject_id: str | None,
        agency_address: str | None,
        payload: dict[str, Any],
        event_sequence: int | None,
        timestamp: datetime | None = None,
    ) -> JournalEntryDB:
        entry_id = str(uuid4())
        timestamp = _normalize_timestamp(timestamp or datetime.now(timezone.utc))
        entry_hash = self._compute_hash(
            entry_id=entry_id,
            sequence_number=sequence_number,
            previous_hash=previous_hash,
            timestamp=timestamp,
            event_type=event_type,
            caller=caller,
            subject_id=subject_id,
            agency_address=agency_address,
            payload=payload,
        )
        return JournalEntryDB(
            id=entry_id,
            sequence_number=sequence_number,
            event_sequence=event_sequence,
            previous_hash=previous_hash,
            entry_hash=entry_hash,
            timestamp=timestamp,
            event_type=event_type,
            caller=caller,
            subject_id=subject_id,
            agency_address=agency_address,
            payload=payload,
        )

    @staticmethod
    def _compute_hash(
        entry_id: str,
        sequence_number: int,
        previous_hash: str,
        timestamp: datetime,
        event_type: str,
        caller: str,
        subject_id: str | None,
        agency_address: str | None,
        payload: dict[str, Any],
    ) -> str:
        """Hash = SHA-256(previous_hash || canonical_json(entry_fields))."""
        hashable = {
            "id": entry_id,
            "sequence_number": sequence_number,
            "previous_hash": previous_hash,
            "timestamp": _normalize_timestamp(timestamp).isoformat(),
            "event_type": event_type,
            "caller": caller,
            "subject_id": subject_id,
            "agency_address": agency_address,
            "payload": payload,
        }
        canonical = json.dumps(hashable, sort_keys=True, default=str)
        return hashlib.sha256((previous_hash + canonical).encode("utf-8")).hexdigest()
