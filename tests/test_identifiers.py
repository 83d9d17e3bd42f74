"""
Tests for the registration number generator.

Validates:
- Numbers stay within [1, sentinel)
- Numbers do not repeat across practical volumes
- The clock and caller feed the hash
"""

from __future__ import annotations

import pytest

from attestation_registry.registry.identifiers import (
    DEFAULT_SENTINEL,
    RegistrationNumberGenerator,
)


class TestRegistrationNumberGenerator:

    def test_numbers_below_sentinel(self):
        generator = RegistrationNumberGenerator(sentinel=1000, clock=lambda: 1.0)
        for _ in range(500):
            number = generator.next("authority")
            assert 0 < number < 1000

    def test_no_repeats_with_default_bound(self):
        generator = RegistrationNumberGenerator()
        numbers = {generator.next("authority") for _ in range(2000)}
        assert len(numbers) == 2000
        assert DEFAULT_SENTINEL not in numbers

    def test_frozen_clock_still_unique(self):
        """The internal counter alone keeps draws apart."""
        generator = RegistrationNumberGenerator(clock=lambda: 42.0)
        assert generator.next("a") != generator.next("a")

    def test_caller_changes_output(self):
        g1 = RegistrationNumberGenerator(clock=lambda: 42.0)
        g2 = RegistrationNumberGenerator(clock=lambda: 42.0)
        assert g1.next("alice") != g2.next("bob")

    def test_deterministic_for_same_inputs(self):
        g1 = RegistrationNumberGenerator(clock=lambda: 7.0)
        g2 = RegistrationNumberGenerator(clock=lambda: 7.0)
        assert [g1.next("x") for _ in range(3)] == [g2.next("x") for _ in range(3)]

    def test_zero_never_issued(self):
        """With a bound of 2 every draw must be 1."""
        generator = RegistrationNumberGenerator(sentinel=2, clock=lambda: 0.0)
        assert all(generator.next("x") == 1 for _ in range(50))

    def test_rejects_tiny_sentinel(self):
        with pytest.raises(ValueError):
            RegistrationNumberGenerator(sentinel=1)
