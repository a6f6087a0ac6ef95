"""Publish state and progress models.

PublishState is process-local and never written on-chain. It is owned by
exactly one PublishStateMachine for the duration of one story publish,
kept across retryable failures and discarded on success or on a
permanent failure.

Usage:
    state = PublishState.start(content, chunks, author_address)
    state = state.with_segment(segment)
    state.next_segment_index  # completed + 1
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from verum.domain.models.chunk import Chunk
from verum.domain.models.story import StorySegment


class PublishPhase(str, Enum):
    """Lifecycle phases of a story publish."""

    IDLE = "idle"
    PUBLISHING = "publishing"
    CONFIRMING = "confirming"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, eq=True)
class PublishState:
    """Resumable state of one story publish.

    Attributes:
        original_content: Content as passed to publish(), before trimming.
        author_address: Address publishing the story.
        chunks: Chunks the content was split into.
        completed_segments: Segments already accepted by the sender.
        last_chain_ref: Transaction the next segment links to.
    """

    original_content: str
    author_address: str
    chunks: tuple[Chunk, ...]
    completed_segments: tuple[StorySegment, ...] = field(default_factory=tuple)
    last_chain_ref: str | None = None

    @classmethod
    def start(
        cls,
        original_content: str,
        chunks: list[Chunk],
        author_address: str,
    ) -> PublishState:
        """Create the state for a publish that has not submitted anything."""
        return cls(
            original_content=original_content,
            author_address=author_address,
            chunks=tuple(chunks),
        )

    @property
    def completed_tx_ids(self) -> tuple[str, ...]:
        """Transaction ids of completed segments, in index order."""
        return tuple(segment.tx_id for segment in self.completed_segments)

    @property
    def total_segments(self) -> int:
        """Number of segments the story needs."""
        return len(self.chunks)

    @property
    def next_segment_index(self) -> int:
        """1-based index of the next segment to submit."""
        return len(self.completed_segments) + 1

    @property
    def is_finished(self) -> bool:
        """True once every chunk has a completed segment."""
        return len(self.completed_segments) >= len(self.chunks)

    def next_chunk(self) -> Chunk:
        """Return the chunk for the next segment.

        Raises:
            IndexError: If every chunk has been submitted.
        """
        return self.chunks[len(self.completed_segments)]

    def with_segment(self, segment: StorySegment) -> PublishState:
        """Return a copy with one more completed segment."""
        return replace(
            self,
            completed_segments=self.completed_segments + (segment,),
            last_chain_ref=segment.tx_id,
        )

    def matches(self, content: str) -> bool:
        """True if content is the content this publish was started with."""
        return content.strip() == self.original_content.strip()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible mapping."""
        return {
            "original_content": self.original_content,
            "author_address": self.author_address,
            "chunks": [chunk.to_dict() for chunk in self.chunks],
            "completed_segments": [
                segment.to_dict() for segment in self.completed_segments
            ],
            "last_chain_ref": self.last_chain_ref,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PublishState:
        """Build a state from to_dict() output.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If a value has the wrong shape.
        """
        return cls(
            original_content=data["original_content"],
            author_address=data["author_address"],
            chunks=tuple(Chunk.from_dict(chunk) for chunk in data["chunks"]),
            completed_segments=tuple(
                StorySegment.from_dict(segment)
                for segment in data.get("completed_segments", [])
            ),
            last_chain_ref=data.get("last_chain_ref"),
        )


@dataclass(frozen=True, eq=True)
class PublishProgress:
    """Observable snapshot of a story publish.

    Attributes:
        phase: Current lifecycle phase.
        current_segment: Segment being worked on, or last completed.
        total_segments: Segments the story needs.
        is_complete: True once the story is fully published.
        error: Failure description, if the publish failed.
        can_retry: True if retry() would resume the publish.
        attempt: Attempt number for the current segment.
        max_attempts: Attempts allowed per segment.
    """

    phase: PublishPhase = PublishPhase.IDLE
    current_segment: int = 0
    total_segments: int = 0
    is_complete: bool = False
    error: str | None = None
    can_retry: bool = False
    attempt: int = 0
    max_attempts: int = 0


IDLE_PROGRESS = PublishProgress()
