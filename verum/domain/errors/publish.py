"""Publish errors for sequential multi-segment story submission.

PublishFailedError is the only error that can leave resumable state
behind; every other error here either never started a publish or
already discarded its state.
"""

from __future__ import annotations

from verum.domain.exceptions import VerumError


class PublishError(VerumError):
    """Base exception for story publishing failures."""

    pass


class PublishFailedError(PublishError):
    """Raised when a publish stops before every segment was submitted.

    Segments that were submitted remain valid on-chain. When retryable is
    True the state machine kept its state and retry() resumes at segment
    completed_segments + 1.

    Attributes:
        reason: Failure description from the sender or the chunker.
        retryable: Whether retry() can resume this publish.
        completed_segments: Segments confirmed before the failure.
        total_segments: Segments the story needs in total.
    """

    def __init__(
        self,
        reason: str,
        retryable: bool,
        completed_segments: int,
        total_segments: int,
    ) -> None:
        """Initialize publish failure.

        Args:
            reason: Failure description.
            retryable: Whether retry() can resume this publish.
            completed_segments: Segments confirmed before the failure.
            total_segments: Segments the story needs in total.
        """
        self.reason = reason
        self.retryable = retryable
        self.completed_segments = completed_segments
        self.total_segments = total_segments
        outcome = "can be resumed" if retryable else "cannot be resumed"
        super().__init__(
            f"Story publish failed after {completed_segments}/{total_segments} "
            f"segments and {outcome}: {reason}"
        )


class NoPublishInProgressError(PublishError):
    """Raised when retry() is called without resumable publish state."""

    def __init__(self) -> None:
        """Initialize no publish in progress error."""
        super().__init__("No publish in progress")


class PublishInProgressError(PublishError):
    """Raised when publish() is called while another publish is running.

    Segments are submitted strictly one after another, so a second publish
    is rejected rather than interleaved.

    Attributes:
        current_segment: Segment the running publish is working on.
        total_segments: Segments of the running publish.
    """

    def __init__(self, current_segment: int, total_segments: int) -> None:
        """Initialize publish in progress error.

        Args:
            current_segment: Segment the running publish is working on.
            total_segments: Segments of the running publish.
        """
        self.current_segment = current_segment
        self.total_segments = total_segments
        super().__init__(
            f"A story publish is already running "
            f"(segment {current_segment}/{total_segments})"
        )


class PublishCancelledError(PublishError):
    """Raised by a running publish once cancel() takes effect.

    Attributes:
        completed_segments: Segments submitted before cancellation.
        total_segments: Segments the story needed in total.
    """

    def __init__(self, completed_segments: int, total_segments: int) -> None:
        """Initialize cancellation error.

        Args:
            completed_segments: Segments submitted before cancellation.
            total_segments: Segments the story needed in total.
        """
        self.completed_segments = completed_segments
        self.total_segments = total_segments
        super().__init__(
            f"Story publish cancelled after {completed_segments}/{total_segments} "
            "segments"
        )


class PublishContentMismatchError(PublishError):
    """Raised when retry() is given content other than the failed publish's."""

    def __init__(self) -> None:
        """Initialize content mismatch error."""
        super().__init__(
            "Content does not match the interrupted publish; "
            "clear it before publishing new content"
        )


class UnauthenticatedError(PublishError):
    """Raised when no sender identity is available to publish with."""

    def __init__(self, message: str = "Wallet is not authenticated") -> None:
        """Initialize unauthenticated error.

        Args:
            message: Failure description.
        """
        super().__init__(message)


class EmptyContentError(PublishError):
    """Raised when content is empty after trimming."""

    def __init__(self) -> None:
        """Initialize empty content error."""
        super().__init__("Empty content cannot be published")


class PublishStateStorageError(PublishError):
    """Raised when persisted publish state cannot be read or written.

    Attributes:
        location: Where the state was stored.
    """

    def __init__(self, location: str, reason: str) -> None:
        """Initialize storage error.

        Args:
            location: Where the state was stored.
            reason: What went wrong.
        """
        self.location = location
        self.reason = reason
        super().__init__(f"Publish state at {location} is unusable: {reason}")
