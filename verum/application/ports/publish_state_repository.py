"""Publish state repository port.

Persists the state of an interrupted story publish so that a new process
can restore it and resume instead of starting over.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from verum.domain.models.publish import PublishState


@runtime_checkable
class PublishStateRepository(Protocol):
    """Protocol for storing at most one publish state."""

    async def save(self, state: PublishState) -> None:
        """Store state, replacing any previous one.

        Raises:
            PublishStateStorageError: If the state cannot be written.
        """
        ...

    async def load(self) -> PublishState | None:
        """Return the stored state, or None if there is none.

        Raises:
            PublishStateStorageError: If stored data cannot be read.
        """
        ...

    async def clear(self) -> None:
        """Remove the stored state. Does nothing if there is none."""
        ...
