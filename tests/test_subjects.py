"""
Tests for the Subject Registry — registration and the score state machine.

Validates:
- Single registration per subject identifier
- Score evolution and the automatic ban at 0
- Duplicate attestation prevention
- Banned subjects reject further attestations
- Rejected operations leave no trace
"""

from __future__ import annotations

import hashlib

import pytest

from attestation_registry.registry.core import IdentityRegistry
from attestation_registry.registry.errors import (
    AlreadyBanned,
    AlreadyRegistered,
    DuplicateAttestation,
    EmptyProfileData,
    InvalidGender,
    NotPermittedAgency,
    RegistryValidationError,
    SubjectNotFound,
)
from attestation_registry.registry.schema import EventType, Gender, PermissionState

AUTHORITY = "authority"
PROFILE = b"\x89PNG fake portrait bytes"


class TestRegistration:

    def setup_method(self):
        self.registry = IdentityRegistry(authority=AUTHORITY)
        self.registry.enroll(AUTHORITY, "agency-a", "Agency A")

    def _register(self, subject_id="S123", caller="agency-a", **overrides):
        kwargs = {
            "profile_data": PROFILE,
            "name": "Ada Obi",
            "gender": Gender.FEMALE,
            "date_of_birth": "1990-04-12",
        }
        kwargs.update(overrides)
        self.registry.register(caller, subject_id=subject_id, **kwargs)

    def test_register_initial_state(self):
        self._register()
        subject = self.registry.get_subject("S123")
        assert subject.verification_score == 1
        assert subject.state == PermissionState.PERMITTED
        assert subject.profile_hash == hashlib.sha256(PROFILE).hexdigest()
        assert subject.registered_by == "agency-a"
        assert self.registry.get_attestors("S123") == []

    def test_register_emits_event(self):
        self._register()
        events = self.registry.get_events(EventType.SUBJECT_REGISTERED)
        assert len(events) == 1
        assert events[0].subject_id == "S123"
        assert events[0].caller == "agency-a"

    def test_second_registration_rejected_regardless_of_data(self):
        self._register()
        with pytest.raises(AlreadyRegistered):
            self._register(profile_data=b"other", name="Someone Else", gender=Gender.MALE)
        subject = self.registry.get_subject("S123")
        assert subject.name == "Ada Obi"
        assert len(self.registry.get_events(EventType.SUBJECT_REGISTERED)) == 1

    def test_empty_profile_rejected(self):
        with pytest.raises(EmptyProfileData):
            self._register(profile_data=b"")
        assert self.registry.get_subject("S123") is None

    def test_unenrolled_caller_rejected(self):
        """Unknown address X cannot register; nothing changes."""
        events_before = self.registry.get_events()
        with pytest.raises(NotPermittedAgency):
            self._register(caller="X")
        assert self.registry.get_subject("S123") is None
        assert self.registry.list_subjects() == []
        assert self.registry.get_events() == events_before

    def test_revoked_agency_cannot_register(self):
        self.registry.revoke_agency(AUTHORITY, "agency-a")
        with pytest.raises(NotPermittedAgency):
            self._register()

    def test_gender_accepts_plain_values(self):
        self._register(gender="other")
        assert self.registry.get_subject("S123").gender == Gender.OTHER

    def test_unknown_gender_rejected(self):
        with pytest.raises(InvalidGender) as exc_info:
            self._register(gender="alien")
        assert isinstance(exc_info.value, RegistryValidationError)
        assert exc_info.value.code == "InvalidGender"
        assert self.registry.get_subject("S123") is None
        assert self.registry.get_events(EventType.SUBJECT_REGISTERED) == []

    def test_registration_order_preserved(self):
        for subject_id in ["S3", "S1", "S2"]:
            self._register(subject_id=subject_id)
        assert [s.subject_id for s in self.registry.list_subjects()] == ["S3", "S1", "S2"]


class TestAttestation:

    def setup_method(self):
        self.registry = IdentityRegistry(authority=AUTHORITY)
        for agency in ["agency-a", "agency-b", "agency-c", "agency-d"]:
            self.registry.enroll(AUTHORITY, agency, agency.title())
        self.registry.register(
            "agency-a", PROFILE, "Ada Obi", Gender.FEMALE, "1990-04-12", "S123"
        )

    def _score(self) -> int:
        return self.registry.get_subject("S123").verification_score

    def _state(self) -> PermissionState:
        return self.registry.get_subject("S123").state

    def test_score_walk(self):
        """1 → +1 → 2 → -1 → 1 (not banned) → -1 → 0 (banned)."""
        assert self._score() == 1

        self.registry.attest("agency-b", "S123", True)
        assert self._score() == 2

        self.registry.attest("agency-c", "S123", False)
        assert self._score() == 1
        assert self._state() == PermissionState.PERMITTED

        self.registry.attest("agency-d", "S123", False)
        assert self._score() == 0
        assert self._state() == PermissionState.BANNED

    def test_positive_attestation_event(self):
        self.registry.attest("agency-b", "S123", True)
        event = self.registry.get_events(EventType.ATTESTATION_POSITIVE)[0]
        assert event.subject_id == "S123"
        assert event.caller == "agency-b"
        assert event.payload["verification_score"] == 2

    def test_negative_attestation_event_when_not_banned(self):
        self.registry.attest("agency-b", "S123", True)
        self.registry.attest("agency-c", "S123", False)
        assert len(self.registry.get_events(EventType.ATTESTATION_NEGATIVE)) == 1
        assert self.registry.get_events(EventType.SUBJECT_BANNED) == []

    def test_ban_replaces_negative_event(self):
        self.registry.attest("agency-b", "S123", False)
        assert self.registry.get_events(EventType.ATTESTATION_NEGATIVE) == []
        banned = self.registry.get_events(EventType.SUBJECT_BANNED)
        assert len(banned) == 1
        assert banned[0].caller == "agency-b"

    def test_ban_is_a_real_mutation(self):
        """The stored state must read BANNED after the score hits 0."""
        self.registry.attest("agency-b", "S123", False)
        stored = self.registry.subjects.get("S123")
        assert stored.state == PermissionState.BANNED
        assert stored.is_banned

    @pytest.mark.parametrize("first,second", [(True, True), (True, False), (False, True)])
    def test_duplicate_attestation_rejected(self, first, second):
        self.registry.attest("agency-b", "S123", True)
        self.registry.attest("agency-c", "S123", first)
        score = self._score()
        with pytest.raises(DuplicateAttestation):
            self.registry.attest("agency-c", "S123", second)
        assert self._score() == score
        assert self.registry.get_attestors("S123") == ["agency-b", "agency-c"]

    def test_registering_agency_may_attest(self):
        self.registry.attest("agency-a", "S123", True)
        assert self._score() == 2

    def test_attestation_on_banned_subject_rejected(self):
        """No unban path exists, so banned subjects accept nothing further."""
        self.registry.attest("agency-b", "S123", False)
        with pytest.raises(AlreadyBanned):
            self.registry.attest("agency-c", "S123", False)
        with pytest.raises(AlreadyBanned):
            self.registry.attest("agency-d", "S123", True)
        assert self._score() == 0
        assert self.registry.get_attestors("S123") == ["agency-b"]

    def test_second_ban_rejected(self):
        self.registry.attest("agency-b", "S123", False)
        stored = self.registry.subjects.get("S123")
        with pytest.raises(AlreadyBanned):
            self.registry.subjects._ban(stored, "agency-c")
        assert len(self.registry.get_events(EventType.SUBJECT_BANNED)) == 1

    def test_unknown_subject(self):
        with pytest.raises(SubjectNotFound):
            self.registry.attest("agency-b", "S999", True)
        assert self.registry.get_attestors("S999") == []

    def test_unenrolled_attestor_rejected(self):
        with pytest.raises(NotPermittedAgency):
            self.registry.attest("stranger", "S123", False)
        assert self._score() == 1
        assert self.registry.get_attestors("S123") == []

    def test_attestors_in_order_without_duplicates(self):
        for agency in ["agency-d", "agency-b", "agency-c"]:
            self.registry.attest(agency, "S123", True)
        attestors = self.registry.get_attestors("S123")
        assert attestors == ["agency-d", "agency-b", "agency-c"]
        assert len(set(attestors)) == len(attestors)
