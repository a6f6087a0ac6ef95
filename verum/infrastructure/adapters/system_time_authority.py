"""System time authority - the real clocks and asyncio sleep."""

from __future__ import annotations

import asyncio
import time

from verum.application.ports.time_authority import TimeAuthorityProtocol


class SystemTimeAuthority(TimeAuthorityProtocol):
    """Production implementation of TimeAuthorityProtocol."""

    def now(self) -> float:
        """Return time.time()."""
        return time.time()

    def monotonic(self) -> float:
        """Return time.monotonic()."""
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        """Wait with asyncio.sleep()."""
        await asyncio.sleep(seconds)
