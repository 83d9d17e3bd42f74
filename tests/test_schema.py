"""
Tests for the registry schema — verifies the Pydantic models.

Validates:
- Enum values
- Record defaults and computed fields
- Field constraints
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from attestation_registry.registry.schema import (
    AgencyRecord,
    EventType,
    Gender,
    PermissionState,
    RegistryEvent,
    SubjectRecord,
)


class TestEnums:

    def test_permission_states(self):
        assert {s.value for s in PermissionState} == {"banned", "permitted"}

    def test_genders(self):
        assert {g.value for g in Gender} == {"male", "female", "other"}

    def test_event_names(self):
        names = [e.value for e in EventType]
        assert names == [
            "AgencyEnrolled",
            "AgencyPermissionChanged",
            "SubjectRegistered",
            "AttestationPositive",
            "AttestationNegative",
            "SubjectBanned",
        ]


class TestRecords:

    def test_agency_defaults(self):
        record = AgencyRecord(address="a", registration_number=7, name="A")
        assert record.permission_state == PermissionState.PERMITTED
        assert record.is_permitted
        assert record.model_dump()["is_permitted"] is True

    def test_agency_number_must_be_positive(self):
        """Registration number 0 is never a real agency."""
        with pytest.raises(ValidationError):
            AgencyRecord(address="a", registration_number=0, name="A")

    def test_subject_defaults(self):
        record = SubjectRecord(
            subject_id="S1",
            profile_hash="ab" * 32,
            name="Sam",
            gender=Gender.MALE,
            date_of_birth="1985-02-01",
            registered_by="A",
        )
        assert record.verification_score == 1
        assert record.state == PermissionState.PERMITTED
        assert record.is_banned is False

    def test_subject_hash_length_enforced(self):
        with pytest.raises(ValidationError):
            SubjectRecord(
                subject_id="S1",
                profile_hash="abc",
                name="Sam",
                gender=Gender.MALE,
                date_of_birth="1985-02-01",
                registered_by="A",
            )

    def test_event_serializes_to_json(self):
        event = RegistryEvent(
            sequence_number=1,
            event_type=EventType.SUBJECT_BANNED,
            caller="B",
            subject_id="S123",
        )
        data = event.model_dump(mode="json")
        assert data["event_type"] == "SubjectBanned"
        assert data["payload"] == {}
