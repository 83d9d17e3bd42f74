"""
Registry Schema — Pydantic models for agencies, subjects and notifications.

These models are the canonical data structures shared by the directory,
the subject registry, the attestation ledger, the event journal and the
HTTP API. Records handed out by the registry are copies; mutating them
never changes registry state.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, computed_field


# ════════════════════════════════════════════════════════════════
# Enumerations
# ════════════════════════════════════════════════════════════════


class PermissionState(str, enum.Enum):
    """Permission state shared by agencies and subjects."""

    BANNED = "banned"
    PERMITTED = "permitted"


class Gender(str, enum.Enum):
    """Gender recorded on a subject's identity record."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class EventType(str, enum.Enum):
    """Notifications emitted by registry operations."""

    AGENCY_ENROLLED = "AgencyEnrolled"
    AGENCY_PERMISSION_CHANGED = "AgencyPermissionChanged"
    SUBJECT_REGISTERED = "SubjectRegistered"
    ATTESTATION_POSITIVE = "AttestationPositive"
    ATTESTATION_NEGATIVE = "AttestationNegative"
    SUBJECT_BANNED = "SubjectBanned"


# ════════════════════════════════════════════════════════════════
# Records
# ════════════════════════════════════════════════════════════════


class AgencyRecord(BaseModel):
    """
    A verifying party enrolled by the Authority.

    The registration number is assigned once at enrollment and never
    reassigned. The Authority's own record carries the reserved sentinel
    number; every other agency's number lies strictly between 0 and it.
    """

    address: str
    registration_number: int = Field(gt=0)
    name: str
    permission_state: PermissionState = PermissionState.PERMITTED
    enrolled_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field
    @property
    def is_permitted(self) -> bool:
        return self.permission_state == PermissionState.PERMITTED


class SubjectRecord(BaseModel):
    """
    An identity record keyed by a subject identifier (e.g. a national ID).

    The verification score starts at 1 and moves by one per attestation.
    A subject whose score reaches 0 is banned and stays banned.
    """

    subject_id: str
    profile_hash: str = Field(
        min_length=64, max_length=64,
        description="Hex SHA-256 digest of the submitted profile data",
    )
    name: str
    gender: Gender
    date_of_birth: str
    verification_score: int = 1
    state: PermissionState = PermissionState.PERMITTED
    registered_by: str = Field(description="Address of the registering agency")
    registered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field
    @property
    def is_banned(self) -> bool:
        return self.state == PermissionState.BANNED


class RegistryEvent(BaseModel):
    """A notification describing the outcome of a successful operation."""

    sequence_number: int
    event_type: EventType
    caller: str
    subject_id: str | None = None
    agency_address: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
