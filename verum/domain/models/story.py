"""Story models.

A Story is never stored on-chain as one object. Readers derive it from
its segments on every reconstruction pass, and only complete stories are
ever handed to consumers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, eq=True)
class StorySegment:
    """One story segment as found on-chain or as just published.

    Attributes:
        tx_id: Transaction holding the segment.
        author_address: Segment author.
        content: Segment text.
        timestamp: Payload timestamp, Unix seconds.
        segment_index: 1-based position in the story.
        total_segments: Declared total, if the segment carries one.
        is_final: True on the last segment.
        parent_id: Previous segment's transaction, None on the first.
    """

    tx_id: str
    author_address: str
    content: str
    timestamp: int
    segment_index: int
    total_segments: int | None
    is_final: bool
    parent_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible mapping."""
        return {
            "tx_id": self.tx_id,
            "author_address": self.author_address,
            "content": self.content,
            "timestamp": self.timestamp,
            "segment_index": self.segment_index,
            "total_segments": self.total_segments,
            "is_final": self.is_final,
            "parent_id": self.parent_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StorySegment:
        """Build a segment from to_dict() output."""
        return cls(
            tx_id=data["tx_id"],
            author_address=data["author_address"],
            content=data["content"],
            timestamp=int(data["timestamp"]),
            segment_index=int(data["segment_index"]),
            total_segments=data.get("total_segments"),
            is_final=bool(data["is_final"]),
            parent_id=data.get("parent_id"),
        )


@dataclass(frozen=True, eq=True)
class Story:
    """A long-form story assembled from its segments.

    Attributes:
        first_segment_id: Transaction of segment 1; the story's identity.
        author_address: Story author.
        segments: Segments ordered by segment_index.
        declared_total: Total carried by the segments, if any.
        is_complete: True when every segment is present and the last one
            is final.
    """

    first_segment_id: str
    author_address: str
    segments: tuple[StorySegment, ...]
    declared_total: int | None
    is_complete: bool

    @property
    def full_content(self) -> str:
        """Segment contents concatenated in index order."""
        return "".join(segment.content for segment in self.segments)

    @property
    def timestamp(self) -> int:
        """Timestamp of the first segment."""
        return self.segments[0].timestamp if self.segments else 0

    @property
    def segment_ids(self) -> tuple[str, ...]:
        """Transaction ids of the segments, in index order."""
        return tuple(segment.tx_id for segment in self.segments)
