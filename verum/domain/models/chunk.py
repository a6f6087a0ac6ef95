"""Chunk model for split story content."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, eq=True)
class Chunk:
    """One piece of story content, ready to be wrapped in a payload.

    Attributes:
        content: Segment text. Joining every chunk's content in order
            gives back the trimmed original.
        segment_index: 1-based position in the story.
        total: Number of chunks the story was split into.
        is_final: True on the last chunk.
    """

    content: str
    segment_index: int
    total: int
    is_final: bool

    def to_dict(self) -> dict[str, object]:
        """Serialize to a JSON-compatible mapping."""
        return {
            "content": self.content,
            "segment_index": self.segment_index,
            "total": self.total,
            "is_final": self.is_final,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> Chunk:
        """Build a chunk from to_dict() output."""
        return cls(
            content=str(data["content"]),
            segment_index=int(data["segment_index"]),  # type: ignore[arg-type]
            total=int(data["total"]),  # type: ignore[arg-type]
            is_final=bool(data["is_final"]),
        )
