"""
Subject Registry — identity records and the verification-score state machine.

A subject is registered once under its identifier with a score of 1.
Each permitted agency may attest it once:

- positive attestation → score + 1
- negative attestation → score - 1; reaching exactly 0 bans the subject

A banned subject stays banned and accepts no further attestations, so
the score never drops below 0. Role checks happen in the access gate
before any method here is called.
"""

from __future__ import annotations

import hashlib
import logging

from attestation_registry.ledger.attestations import AttestationLedger
from attestation_registry.registry.errors import (
    AlreadyBanned,
    AlreadyRegistered,
    DuplicateAttestation,
    EmptyProfileData,
    InvalidGender,
    SubjectNotFound,
)
from attestation_registry.registry.events import EventBus
from attestation_registry.registry.schema import (
    EventType,
    Gender,
    PermissionState,
    SubjectRecord,
)

logger = logging.getLogger(__name__)

INITIAL_SCORE = 1


def hash_profile(profile_data: bytes) -> str:
    """SHA-256 content hash of a subject's profile data (hex)."""
    return hashlib.sha256(profile_data).hexdigest()


class SubjectRegistry:
    """Keyed store of subject records, in registration order."""

    def __init__(self, ledger: AttestationLedger, events: EventBus) -> None:
        self.ledger = ledger
        self.events = events
        self._records: dict[str, SubjectRecord] = {}

    def get(self, subject_id: str) -> SubjectRecord | None:
        return self._records.get(subject_id)

    def records(self) -> list[SubjectRecord]:
        return list(self._records.values())

    def register(
        self,
        caller: str,
        profile_data: bytes,
        name: str,
        gender: Gender,
        date_of_birth: str,
        subject_id: str,
    ) -> SubjectRecord:
        """
        Register a new subject on behalf of agency ``caller``.

        Raises:
            EmptyProfileData: ``profile_data`` is empty.
            InvalidGender: ``gender`` is not a Gender value.
            AlreadyRegistered: ``subject_id`` is already registered, whatever
                the other inputs are.
        """
        if not profile_data:
            raise EmptyProfileData("Profile data must not be empty")
        try:
            gender = Gender(gender)
        except ValueError:
            raise InvalidGender(f"Unknown gender: {gender!r}") from None
        if subject_id in self._records:
            raise AlreadyRegistered(f"Subject {subject_id} is already registered")

        record = SubjectRecord(
            subject_id=subject_id,
            profile_hash=hash_profile(profile_data),
            name=name,
            gender=gender,
            date_of_birth=date_of_birth,
            verification_score=INITIAL_SCORE,
            state=PermissionState.PERMITTED,
            registered_by=caller,
        )
        self._records[subject_id] = record

        logger.info(
            "Subject registered: id=%s by=%s hash=%s",
            subject_id, caller, record.profile_hash[:16],
        )
        self.events.emit(EventType.SUBJECT_REGISTERED, caller=caller, subject_id=subject_id)
        return record

    def attest(self, caller: str, subject_id: str, is_valid: bool) -> SubjectRecord:
        """
        Apply one agency's attestation to a subject.

        Raises:
            SubjectNotFound: ``subject_id`` is not registered.
            DuplicateAttestation: ``caller`` already attested this subject.
            AlreadyBanned: The subject is banned.
        """
        record = self._records.get(subject_id)
        if record is None:
            raise SubjectNotFound(f"Subject {subject_id} is not registered")
        if not self.ledger.can_attest(subject_id, caller):
            raise DuplicateAttestation(
                f"Agency {caller} has already attested subject {subject_id}"
            )
        if record.state == PermissionState.BANNED:
            raise AlreadyBanned(f"Subject {subject_id} is banned")

        if is_valid:
            record.verification_score += 1
            self.events.emit(
                EventType.ATTESTATION_POSITIVE,
                caller=caller,
                subject_id=subject_id,
                verification_score=record.verification_score,
            )
        else:
            record.verification_score -= 1
            if record.verification_score == 0:
                self._ban(record, caller)
            else:
                self.events.emit(
                    EventType.ATTESTATION_NEGATIVE,
                    caller=caller,
                    subject_id=subject_id,
                    verification_score=record.verification_score,
                )

        self.ledger.record(subject_id, caller)

        logger.info(
            "Attestation recorded: subject=%s agency=%s valid=%s score=%d",
            subject_id, caller, is_valid, record.verification_score,
        )
        return record

    def _ban(self, record: SubjectRecord, caller: str) -> None:
        if record.state == PermissionState.BANNED:
            raise AlreadyBanned(f"Subject {record.subject_id} is already banned")

        record.state = PermissionState.BANNED

        logger.warning(
            "Subject banned: id=%s trigger=%s", record.subject_id, caller,
        )
        self.events.emit(
            EventType.SUBJECT_BANNED,
            caller=caller,
            subject_id=record.subject_id,
            verification_score=record.verification_score,
        )
