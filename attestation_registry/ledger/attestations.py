"""
Attestation Ledger — per-subject, append-only log of attesting agencies.

The ledger answers one question: has this agency already attested this
subject? ``record`` performs no de-duplication; callers check
``can_attest`` first.
"""

from __future__ import annotations


class AttestationLedger:
    """Ordered attestor lists keyed by subject identifier."""

    def __init__(self) -> None:
        self._logs: dict[str, list[str]] = {}

    def can_attest(self, subject_id: str, agency: str) -> bool:
        return agency not in self._logs.get(subject_id, ())

    def record(self, subject_id: str, agency: str) -> None:
        self._logs.setdefault(subject_id, []).append(agency)

    def attestors(self, subject_id: str) -> list[str]:
        """Agencies that attested ``subject_id``, in attestation order."""
        return list(self._logs.get(subject_id, ()))
