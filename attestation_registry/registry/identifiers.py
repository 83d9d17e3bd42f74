"""
Registration number generator for newly enrolled agencies.

Numbers are derived from a one-way hash of an internal counter, the
current time and the enrolling caller, reduced modulo the sentinel bound.
The sentinel itself is reserved for the Authority and 0 is never issued.
The numbers are not secret; they only need to be unique in practice.
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL = 10**16


class RegistrationNumberGenerator:
    """
    Produces registration numbers in ``[1, sentinel)``.

    Collisions with already-assigned numbers are not handled here; the
    agency directory rejects them at enrollment.
    """

    def __init__(
        self,
        sentinel: int = DEFAULT_SENTINEL,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if sentinel < 2:
            raise ValueError("Sentinel bound must be at least 2")
        self.sentinel = sentinel
        self._clock = clock or time.time
        self._counter = 0

    def next(self, caller: str) -> int:
        """Return the next registration number for an enrollment by ``caller``."""
        while True:
            self._counter += 1
            digest = hashlib.sha256(
                f"{self._counter}:{self._clock()!r}:{caller}".encode("utf-8")
            ).digest()
            number = int.from_bytes(digest, "big") % self.sentinel
            if number != 0:
                logger.debug("Registration number drawn: counter=%d", self._counter)
                return number
