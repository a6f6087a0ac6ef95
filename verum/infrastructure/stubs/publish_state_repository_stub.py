"""PublishStateRepositoryStub for testing.

Stores the serialized form of the state, so a save/load cycle goes
through the same to_dict/from_dict path as durable storage.
"""

from __future__ import annotations

from typing import Any

from verum.application.ports.publish_state_repository import PublishStateRepository
from verum.domain.models.publish import PublishState


class PublishStateRepositoryStub(PublishStateRepository):
    """In-memory stub implementation of PublishStateRepository.

    Attributes:
        saves: Number of save() calls.
    """

    def __init__(self) -> None:
        """Initialize empty repository."""
        self._stored: dict[str, Any] | None = None
        self.saves = 0

    def seed_state(self, state: PublishState) -> None:
        """Store state without counting a save."""
        self._stored = state.to_dict()

    @property
    def has_state(self) -> bool:
        """True if a state is stored."""
        return self._stored is not None

    async def save(self, state: PublishState) -> None:
        """Store state, replacing any previous one."""
        self._stored = state.to_dict()
        self.saves += 1

    async def load(self) -> PublishState | None:
        """Return the stored state, if any."""
        if self._stored is None:
            return None
        return PublishState.from_dict(self._stored)

    async def clear(self) -> None:
        """Remove the stored state."""
        self._stored = None
