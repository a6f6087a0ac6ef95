"""HealthProbeStub for testing."""

from __future__ import annotations

from verum.application.ports.health_probe import HealthProbePort


class HealthProbeStub(HealthProbePort):
    """Reports a configurable latency, or fails on demand.

    Attributes:
        pings: Number of probes made.
    """

    def __init__(self, latency: float = 0.1) -> None:
        """Initialize with the latency to report, in seconds."""
        self._latency = latency
        self._error: Exception | None = None
        self.pings = 0

    def set_latency(self, latency: float) -> None:
        """Change the reported latency."""
        self._latency = latency

    def fail_with(self, error: Exception | None) -> None:
        """Make every probe raise error. None restores normal probes."""
        self._error = error

    async def ping(self) -> float:
        """Return the configured latency or raise the configured error."""
        self.pings += 1
        if self._error is not None:
            raise self._error
        return self._latency
