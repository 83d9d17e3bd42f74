"""
Access Control Gate — role guards in front of every mutating operation.

Two guards exist:

- require_authority: the caller must be the Authority fixed at start-up
- require_permitted_agency: the caller must be an enrolled agency whose
  permission state is currently PERMITTED

Guards return an AccessCheckResult instead of raising, so they can be
composed and inspected. Operations call ``raise_for_denial()`` on the
result before touching any state. Unknown callers have no directory
record and are therefore denied by the agency guard (default-deny).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from attestation_registry.registry.errors import (
    AuthorizationError,
    NotOwner,
    NotPermittedAgency,
)
from attestation_registry.registry.schema import PermissionState

if TYPE_CHECKING:
    from attestation_registry.governance.agencies import AgencyDirectory

logger = logging.getLogger(__name__)


class AccessDecision(str, Enum):
    """Result of a role check."""

    AUTHORIZED = "authorized"
    NOT_OWNER = "not_owner"
    NOT_PERMITTED_AGENCY = "not_permitted_agency"


_DENIAL_ERRORS: dict[AccessDecision, type[AuthorizationError]] = {
    AccessDecision.NOT_OWNER: NotOwner,
    AccessDecision.NOT_PERMITTED_AGENCY: NotPermittedAgency,
}


@dataclass
class AccessCheckResult:
    """Result of checking a caller against a role."""

    decision: AccessDecision
    caller: str
    reason: str

    @property
    def is_allowed(self) -> bool:
        return self.decision == AccessDecision.AUTHORIZED

    def raise_for_denial(self) -> None:
        """Raise the typed authorization error matching a denial."""
        if self.is_allowed:
            return
        logger.warning("Access denied: caller=%s reason=%s", self.caller, self.reason)
        raise _DENIAL_ERRORS[self.decision](self.reason)


class AccessGate:
    """Role guards bound to one Authority and one agency directory."""

    def __init__(self, authority: str, directory: AgencyDirectory) -> None:
        self.authority = authority
        self.directory = directory

    def require_authority(self, caller: str) -> AccessCheckResult:
        if caller == self.authority:
            return AccessCheckResult(
                decision=AccessDecision.AUTHORIZED,
                caller=caller,
                reason="Caller is the Authority",
            )
        return AccessCheckResult(
            decision=AccessDecision.NOT_OWNER,
            caller=caller,
            reason=f"Caller {caller} is not the Authority",
        )

    def require_permitted_agency(self, caller: str) -> AccessCheckResult:
        record = self.directory.get(caller)
        if record is None:
            return AccessCheckResult(
                decision=AccessDecision.NOT_PERMITTED_AGENCY,
                caller=caller,
                reason=f"Caller {caller} is not an enrolled agency",
            )

        if record.permission_state != PermissionState.PERMITTED:
            return AccessCheckResult(
                decision=AccessDecision.NOT_PERMITTED_AGENCY,
                caller=caller,
                reason=f"Agency {caller} is {record.permission_state.value}",
            )

        return AccessCheckResult(
            decision=AccessDecision.AUTHORIZED,
            caller=caller,
            reason=f"Agency {caller} is permitted",
        )
