"""
Identity Registry — the single authoritative owner of all registry state.

The registry owns the agency directory, the subject registry, the
attestation ledger, the registration number generator and the event bus.
Every public operation:

1. takes the registry lock (operations never interleave)
2. runs the access gate for the caller's role
3. validates all preconditions, then mutates and emits notifications

Because validation precedes mutation, a rejected operation leaves no
trace: no state change and no notification.

Usage:
    registry = IdentityRegistry(authority="0xAUTH", authority_name="Ministry")
    number = registry.enroll("0xAUTH", "0xAGENCY", "Civil Records Office")
    registry.register("0xAGENCY", image_bytes, "Ada", Gender.FEMALE,
                      "1990-01-01", "S123")
    registry.attest("0xAGENCY2", "S123", is_valid=True)
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from attestation_registry.governance.access import AccessGate
from attestation_registry.governance.agencies import AgencyDirectory
from attestation_registry.governance.subjects import SubjectRegistry
from attestation_registry.ledger.attestations import AttestationLedger
from attestation_registry.registry.events import EventBus, EventHandler
from attestation_registry.registry.identifiers import (
    DEFAULT_SENTINEL,
    RegistrationNumberGenerator,
)
from attestation_registry.registry.schema import (
    AgencyRecord,
    EventType,
    Gender,
    RegistryEvent,
    SubjectRecord,
)

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """Permissioned registry of agencies, subjects and attestations."""

    def __init__(
        self,
        authority: str,
        authority_name: str = "Authority",
        sentinel: int = DEFAULT_SENTINEL,
        generator: RegistrationNumberGenerator | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """
        Initialize the registry and self-register the Authority.

        Args:
            authority: Identity of the Authority, fixed for the registry's life.
            authority_name: Display name for the Authority's agency record.
            sentinel: Reserved registration number of the Authority; agency
                numbers are drawn below it.
            generator: Registration number source. Defaults to a hash-based
                generator bounded by ``sentinel``.
            clock: Time source for the default generator.
        """
        self.authority = authority
        self.events = EventBus()
        self.generator = generator or RegistrationNumberGenerator(sentinel, clock=clock)
        self.directory = AgencyDirectory(
            authority, authority_name, self.generator, self.events
        )
        self.ledger = AttestationLedger()
        self.subjects = SubjectRegistry(self.ledger, self.events)
        self.gate = AccessGate(authority, self.directory)
        self._lock = threading.RLock()

    def subscribe(self, handler: EventHandler) -> None:
        """Deliver every future notification to ``handler``."""
        self.events.subscribe(handler)

    # ── Authority operations ────────────────────────────────────

    def enroll(self, caller: str, address: str, name: str) -> int:
        with self._lock:
            self.gate.require_authority(caller).raise_for_denial()
            return self.directory.enroll(caller, address, name)

    def set_permitted(self, caller: str, address: str) -> None:
        with self._lock:
            self.gate.require_authority(caller).raise_for_denial()
            self.directory.set_permitted(caller, address)

    def revoke_agency(self, caller: str, address: str) -> None:
        with self._lock:
            self.gate.require_authority(caller).raise_for_denial()
            self.directory.revoke(caller, address)

    # ── Agency operations ───────────────────────────────────────

    def register(
        self,
        caller: str,
        profile_data: bytes,
        name: str,
        gender: Gender,
        date_of_birth: str,
        subject_id: str,
    ) -> None:
        with self._lock:
            self.gate.require_permitted_agency(caller).raise_for_denial()
            self.subjects.register(
                caller, profile_data, name, gender, date_of_birth, subject_id
            )

    def attest(self, caller: str, subject_id: str, is_valid: bool) -> None:
        with self._lock:
            self.gate.require_permitted_agency(caller).raise_for_denial()
            self.subjects.attest(caller, subject_id, is_valid)

    # ── Reads ───────────────────────────────────────────────────

    def get_authority(self) -> tuple[str, AgencyRecord]:
        with self._lock:
            record = self.directory.get(self.authority)
            return self.authority, record.model_copy()

    def get_agency(self, address: str) -> AgencyRecord | None:
        with self._lock:
            record = self.directory.get(address)
            return record.model_copy() if record is not None else None

    def get_subject(self, subject_id: str) -> SubjectRecord | None:
        with self._lock:
            record = self.subjects.get(subject_id)
            return record.model_copy() if record is not None else None

    def get_attestors(self, subject_id: str) -> list[str]:
        with self._lock:
            return self.ledger.attestors(subject_id)

    def list_agencies(self) -> list[AgencyRecord]:
        with self._lock:
            return [r.model_copy() for r in self.directory.records()]

    def list_subjects(self) -> list[SubjectRecord]:
        with self._lock:
            return [r.model_copy() for r in self.subjects.records()]

    def get_events(self, event_type: EventType | None = None) -> list[RegistryEvent]:
        with self._lock:
            return self.events.events(event_type)
