"""Health probe port.

A lightweight check of the sender's responsiveness, used to slow down
long multi-segment publishes when the wallet or node is struggling.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class HealthProbePort(Protocol):
    """Protocol for probing sender health."""

    async def ping(self) -> float:
        """Probe the sender.

        Returns:
            Observed latency in seconds.

        Raises:
            Exception: Any failure; callers log it and carry on.
        """
        ...
