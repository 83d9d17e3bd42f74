"""
Agency Directory — enrollment and permission state of verifying agencies.

State machine per agency: PERMITTED ⇄ BANNED. The Authority registers
itself at construction with the sentinel registration number. Agencies it
enrolls start PERMITTED; ``revoke`` moves them to BANNED and
``set_permitted`` moves them back.

Role checks are not performed here. Every mutating call must first pass
through the access gate (see ``attestation_registry.registry.core``).
"""

from __future__ import annotations

import logging

from attestation_registry.registry.errors import (
    AgencyNotFound,
    AlreadyBanned,
    AlreadyEnrolled,
    AlreadyPermitted,
    InvalidRegistration,
    ProtectedAgency,
)
from attestation_registry.registry.events import EventBus
from attestation_registry.registry.identifiers import RegistrationNumberGenerator
from attestation_registry.registry.schema import (
    AgencyRecord,
    EventType,
    PermissionState,
)

logger = logging.getLogger(__name__)


class AgencyDirectory:
    """Keyed store of agency records, in enrollment order."""

    def __init__(
        self,
        authority: str,
        authority_name: str,
        generator: RegistrationNumberGenerator,
        events: EventBus,
    ) -> None:
        self.authority = authority
        self.generator = generator
        self.events = events
        self._records: dict[str, AgencyRecord] = {}
        self._assigned_numbers: set[int] = set()

        self._store(
            AgencyRecord(
                address=authority,
                registration_number=generator.sentinel,
                name=authority_name,
                permission_state=PermissionState.PERMITTED,
            )
        )
        logger.info(
            "Authority registered: address=%s sentinel=%d",
            authority, generator.sentinel,
        )

    def _store(self, record: AgencyRecord) -> None:
        self._records[record.address] = record
        self._assigned_numbers.add(record.registration_number)

    # ── Reads ───────────────────────────────────────────────────

    def get(self, address: str) -> AgencyRecord | None:
        """Return the stored record for ``address``, or None if not enrolled."""
        return self._records.get(address)

    def is_permitted(self, address: str) -> bool:
        record = self._records.get(address)
        return record is not None and record.permission_state == PermissionState.PERMITTED

    def records(self) -> list[AgencyRecord]:
        return list(self._records.values())

    # ── Transitions ─────────────────────────────────────────────

    def enroll(self, caller: str, address: str, name: str) -> int:
        """
        Enroll a new agency and return its registration number.

        Raises:
            AlreadyEnrolled: The address already has a record.
            InvalidRegistration: The drawn number is the reserved sentinel
                or is already assigned to another agency.
        """
        if address in self._records:
            raise AlreadyEnrolled(f"Agency {address} is already enrolled")

        number = self.generator.next(caller)
        if number == self.generator.sentinel:
            raise InvalidRegistration(
                f"Registration number {number} is reserved for the Authority"
            )
        if number <= 0 or number in self._assigned_numbers:
            raise InvalidRegistration(
                f"Registration number {number} is not available"
            )

        self._store(
            AgencyRecord(
                address=address,
                registration_number=number,
                name=name,
                permission_state=PermissionState.PERMITTED,
            )
        )

        logger.info("Agency enrolled: address=%s number=%d name='%s'", address, number, name)
        self.events.emit(
            EventType.AGENCY_ENROLLED,
            caller=caller,
            agency_address=address,
            registration_number=number,
            name=name,
        )
        return number

    def set_permitted(self, caller: str, address: str) -> None:
        record = self._records.get(address)
        if record is None:
            raise AgencyNotFound(f"Agency {address} is not enrolled")
        if record.permission_state == PermissionState.PERMITTED:
            raise AlreadyPermitted(f"Agency {address} is already permitted")

        self._transition(caller, record, PermissionState.PERMITTED)

    def revoke(self, caller: str, address: str) -> None:
        record = self._records.get(address)
        if record is None:
            raise AgencyNotFound(f"Agency {address} is not enrolled")
        if address == self.authority:
            raise ProtectedAgency("The Authority's own permission cannot be revoked")
        if record.permission_state == PermissionState.BANNED:
            raise AlreadyBanned(f"Agency {address} is already banned")

        self._transition(caller, record, PermissionState.BANNED)

    def _transition(
        self,
        caller: str,
        record: AgencyRecord,
        new_state: PermissionState,
    ) -> None:
        previous = record.permission_state
        record.permission_state = new_state

        logger.info(
            "Agency permission changed: address=%s %s -> %s",
            record.address, previous.value, new_state.value,
        )
        self.events.emit(
            EventType.AGENCY_PERMISSION_CHANGED,
            caller=caller,
            agency_address=record.address,
            registration_number=record.registration_number,
            previous_state=previous.value,
            permission_state=new_state.value,
        )
