"""Chunking errors for long-form story content.

Both errors are permanent: retrying the same content produces the same
result, so the caller must change the content instead.
"""

from __future__ import annotations

from verum.domain.exceptions import VerumError


class ChunkingError(VerumError):
    """Raised when content cannot be split into payloads that fit.

    Attributes:
        reason: What prevented the split.
        position: Character offset where splitting failed.
    """

    def __init__(
        self,
        reason: str,
        position: int = 0,
        message: str | None = None,
    ) -> None:
        """Initialize chunking error.

        Args:
            reason: What prevented the split.
            position: Character offset where splitting failed.
            message: Full message, if the default wording does not fit.
        """
        self.reason = reason
        self.position = position
        super().__init__(
            message or f"Cannot split content at offset {position}: {reason}"
        )


class ContentTooLargeError(ChunkingError):
    """Raised when content needs more segments than the configured ceiling.

    The ceiling is operational, not a protocol limit. The attributes let
    a caller tell the user how much to trim; content is never truncated.

    Attributes:
        estimated_segments: Segments the content would need.
        limit: Configured maximum number of segments.
        content_bytes: Serialized size of the content.
        max_content_bytes: Content bytes available per segment.
    """

    def __init__(
        self,
        estimated_segments: int,
        limit: int,
        content_bytes: int,
        max_content_bytes: int,
    ) -> None:
        """Initialize content too large error.

        Args:
            estimated_segments: Segments the content would need.
            limit: Configured maximum number of segments.
            content_bytes: Serialized size of the content.
            max_content_bytes: Content bytes available per segment.
        """
        self.estimated_segments = estimated_segments
        self.limit = limit
        self.content_bytes = content_bytes
        self.max_content_bytes = max_content_bytes
        super().__init__(
            reason="segment limit exceeded",
            message=(
                f"Content too large: needs about {estimated_segments} segments "
                f"(max {limit}). Reduce it to roughly "
                f"{limit * max_content_bytes} bytes."
            ),
        )

    @property
    def suggested_max_chars(self) -> int:
        """Approximate character budget that would fit within the limit."""
        return self.limit * self.max_content_bytes
