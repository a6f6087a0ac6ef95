"""FakeTimeAuthority - Controllable time authority for deterministic tests.

This module provides a fake implementation of TimeAuthorityProtocol that
lets tests control the wall clock and the monotonic clock, and turns every
sleep into an instant, recorded clock advance.

Usage Patterns:
--------------

1. Frozen Time Pattern:
    Tests that need a specific point in time.

    >>> fake_time = FakeTimeAuthority(frozen_at=1722470500.0)
    >>> builder = PayloadBuilder(clock=fake_time.now)
    >>> # Time never changes unless you advance it or something sleeps
    >>> assert fake_time.now() == 1722470500.0

2. Time Advancement Pattern:
    Tests that need to simulate time passing.

    >>> fake_time = FakeTimeAuthority(frozen_at=1722470500.0)
    >>> fake_time.advance(seconds=3600)
    >>> assert fake_time.now() == 1722474100.0

3. Sleep Recording Pattern:
    Services sleep through the time authority; the fake never waits.

    >>> await fake_time.sleep(2.5)
    >>> assert fake_time.sleeps == [2.5]
    >>> assert fake_time.total_slept == 2.5

4. Pytest Fixture Pattern:
    Use the `fake_time` fixture from conftest.py.

    async def test_retry_delay(fake_time):
        submitter = TransactionSubmitter(sender, fees, fake_time)
        ...
        assert fake_time.sleeps == [2.5]
"""

from __future__ import annotations

import asyncio

from verum.application.ports.time_authority import TimeAuthorityProtocol

DEFAULT_FROZEN_AT = 1767225600.0  # 2026-01-01T00:00:00Z


class FakeTimeAuthority(TimeAuthorityProtocol):
    """Controllable time authority for deterministic tests.

    Attributes:
        sleeps: Every duration passed to sleep(), in call order.

    Example:
        >>> fake_time = FakeTimeAuthority(frozen_at=1722470500.0)
        >>> fake_time.advance(seconds=10)
        >>> fake_time.now()
        1722470510.0
    """

    def __init__(
        self,
        frozen_at: float | None = None,
        *,
        start_monotonic: float = 0.0,
    ) -> None:
        """Initialize the fake time authority.

        Args:
            frozen_at: Unix time to freeze at. Defaults to
                2026-01-01T00:00:00 UTC for predictable tests.
            start_monotonic: Starting value for monotonic clock.
        """
        self._current_time: float = DEFAULT_FROZEN_AT if frozen_at is None else frozen_at
        self._monotonic_base: float = start_monotonic
        self._monotonic_advances: float = 0.0
        self.sleeps: list[float] = []

    # =========================================================================
    # TimeAuthorityProtocol Implementation
    # =========================================================================

    def now(self) -> float:
        """Return the controlled current Unix time."""
        return self._current_time

    def monotonic(self) -> float:
        """Return the controlled monotonic clock value."""
        return self._monotonic_base + self._monotonic_advances

    async def sleep(self, seconds: float) -> None:
        """Record the sleep, advance both clocks and yield control once."""
        self.sleeps.append(seconds)
        if seconds > 0:
            self.advance(seconds=seconds)
        await asyncio.sleep(0)

    # =========================================================================
    # Test Control Methods
    # =========================================================================

    def advance(self, seconds: float) -> None:
        """Advance time by the specified amount.

        Raises:
            ValueError: If attempting to advance by negative time.
        """
        if seconds < 0:
            raise ValueError(
                f"Cannot advance time backwards. Got {seconds} seconds. "
                "Use set_time() for explicit time changes."
            )
        self._current_time += seconds
        self._monotonic_advances += seconds

    def set_time(self, timestamp: float) -> None:
        """Set the wall clock without touching the monotonic clock."""
        self._current_time = timestamp

    @property
    def total_slept(self) -> float:
        """Sum of every recorded sleep."""
        return sum(self.sleeps)

    def __repr__(self) -> str:
        """Return string representation for debugging."""
        return (
            f"FakeTimeAuthority(now={self._current_time:.3f}, "
            f"monotonic={self.monotonic():.3f}, sleeps={len(self.sleeps)})"
        )
