"""Time authority port - wall clock, monotonic clock and waiting.

Services that stamp payloads, measure latency or pause between attempts
take a TimeAuthorityProtocol instead of calling time.time() or
asyncio.sleep() directly, so tests can drive time deterministically.

For production:
    Use SystemTimeAuthority from verum.infrastructure.adapters.

For testing:
    Use FakeTimeAuthority from tests/helpers/fake_time_authority.py.
"""

from abc import ABC, abstractmethod


class TimeAuthorityProtocol(ABC):
    """Abstract interface for time authority.

    Example usage:
        class MyService:
            def __init__(self, time_authority: TimeAuthorityProtocol) -> None:
                self._time = time_authority

            async def process(self) -> None:
                stamp = int(self._time.now())
                await self._time.sleep(0.5)
    """

    @abstractmethod
    def now(self) -> float:
        """Return the current Unix time in seconds."""

    @abstractmethod
    def monotonic(self) -> float:
        """Return a monotonic clock value in seconds.

        Only differences between two values are meaningful.
        """

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Suspend the caller for the given number of seconds.

        Args:
            seconds: Time to wait. Zero yields control without waiting.
        """
