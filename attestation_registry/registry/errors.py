"""
Registry errors — every rejection is a named precondition failure.

Errors are raised before any state is mutated, so a failed operation has
no side effects. Callers distinguish them by class or by ``code``.
"""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for all registry rejections."""

    code = "RegistryError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


# ── Authorization ──────────────────────────────────────────────


class AuthorizationError(RegistryError):
    code = "AuthorizationError"


class NotOwner(AuthorizationError):
    """Caller is not the Authority."""

    code = "NotOwner"


class NotPermittedAgency(AuthorizationError):
    """Caller is not a currently permitted agency."""

    code = "NotPermittedAgency"


# ── Conflict ───────────────────────────────────────────────────


class ConflictError(RegistryError):
    code = "ConflictError"


class AlreadyEnrolled(ConflictError):
    code = "AlreadyEnrolled"


class AlreadyRegistered(ConflictError):
    code = "AlreadyRegistered"


class AlreadyPermitted(ConflictError):
    code = "AlreadyPermitted"


class AlreadyBanned(ConflictError):
    code = "AlreadyBanned"


class DuplicateAttestation(ConflictError):
    code = "DuplicateAttestation"


# ── Validation ─────────────────────────────────────────────────


class RegistryValidationError(RegistryError):
    code = "ValidationError"


class InvalidRegistration(RegistryValidationError):
    """Generated registration number is reserved or already assigned."""

    code = "InvalidRegistration"


class EmptyProfileData(RegistryValidationError):
    code = "EmptyProfileData"


class InvalidGender(RegistryValidationError):
    code = "InvalidGender"


class ProtectedAgency(RegistryValidationError):
    """The Authority's own record cannot be revoked."""

    code = "ProtectedAgency"


# ── Not found ──────────────────────────────────────────────────


class NotFoundError(RegistryError):
    code = "NotFound"


class AgencyNotFound(NotFoundError):
    code = "AgencyNotFound"


class SubjectNotFound(NotFoundError):
    code = "SubjectNotFound"
