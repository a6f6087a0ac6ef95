"""Retry policy for transaction submission failures.

Failures are classified into three groups:
- RETRYABLE: transient conditions (user cancelled the wallet prompt,
  insufficient funds, network trouble, rate limits, node overload). The
  same segment is submitted again after a progressive delay.
- PERMANENT: conditions another attempt cannot fix (content too large,
  not authenticated, empty content). Publish state is discarded.
- UNKNOWN: anything unrecognized. Not retried automatically, but the
  publish state is kept so the user may still resume.

A SenderError with an explicit retryable flag overrides message matching.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from verum.domain.errors.chunking import ChunkingError
from verum.domain.errors.payload import PayloadTooLargeError, PayloadValidationError
from verum.domain.errors.publish import EmptyContentError, UnauthenticatedError
from verum.domain.errors.sender import SenderError

RETRYABLE_MARKERS: tuple[str, ...] = (
    "user rejected",
    "user denied",
    "insufficient funds",
    "network error",
    "connection failed",
    "timeout",
    "timed out",
    "rate limit",
    "busy",
    "pending",
    "try again",
    "overloaded",
    "slow response",
)

PERMANENT_MARKERS: tuple[str, ...] = (
    "content too large",
    "payload too large",
    "not authenticated",
    "unauthenticated",
    "empty content",
)

_PERMANENT_ERRORS = (
    ChunkingError,
    PayloadTooLargeError,
    PayloadValidationError,
    UnauthenticatedError,
    EmptyContentError,
)


class FailureClass(str, Enum):
    """How a submission failure should be handled."""

    RETRYABLE = "retryable"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


@dataclass(frozen=True, eq=True)
class FailureClassification:
    """Classification of one failure.

    Attributes:
        failure_class: Handling group.
        reason: Marker or error type that decided the group.
    """

    failure_class: FailureClass
    reason: str

    @property
    def is_retryable(self) -> bool:
        """True if the same segment should be submitted again."""
        return self.failure_class is FailureClass.RETRYABLE

    @property
    def is_permanent(self) -> bool:
        """True if publish state must be discarded."""
        return self.failure_class is FailureClass.PERMANENT


class RetryPolicy:
    """Classifies failures and computes retry delays.

    Example:
        >>> policy = RetryPolicy()
        >>> policy.classify(SenderError("Network error")).is_retryable
        True
        >>> policy.delay_for(attempt=2, segment_index=3)
        5.5
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        index_step: float = 0.5,
        max_delay: float = 10.0,
        retryable_markers: tuple[str, ...] = RETRYABLE_MARKERS,
        permanent_markers: tuple[str, ...] = PERMANENT_MARKERS,
    ) -> None:
        """Initialize the policy.

        Args:
            max_attempts: Attempts allowed per segment.
            base_delay: Seconds added per attempt.
            index_step: Seconds added per segment index.
            max_delay: Delay cap in seconds.
            retryable_markers: Lowercase substrings marking transient failures.
            permanent_markers: Lowercase substrings marking permanent failures.
        """
        self._max_attempts = max_attempts
        self._base_delay = base_delay
        self._index_step = index_step
        self._max_delay = max_delay
        self._retryable_markers = retryable_markers
        self._permanent_markers = permanent_markers

    @property
    def max_attempts(self) -> int:
        """Attempts allowed per segment."""
        return self._max_attempts

    def classify(self, error: BaseException) -> FailureClassification:
        """Classify a failure raised while submitting."""
        if isinstance(error, SenderError) and error.retryable is not None:
            return FailureClassification(
                FailureClass.RETRYABLE if error.retryable else FailureClass.PERMANENT,
                "sender flag",
            )
        if isinstance(error, _PERMANENT_ERRORS):
            return FailureClassification(FailureClass.PERMANENT, type(error).__name__)

        message = str(error).lower()
        for marker in self._permanent_markers:
            if marker in message:
                return FailureClassification(FailureClass.PERMANENT, marker)
        for marker in self._retryable_markers:
            if marker in message:
                return FailureClassification(FailureClass.RETRYABLE, marker)
        return FailureClassification(FailureClass.UNKNOWN, "unrecognized")

    def should_retry(self, classification: FailureClassification, attempt: int) -> bool:
        """True if another attempt at the same segment is allowed."""
        return classification.is_retryable and attempt < self._max_attempts

    def delay_for(self, attempt: int, segment_index: int) -> float:
        """Return the pause before the next attempt, in seconds.

        Args:
            attempt: 1-based attempt that just failed.
            segment_index: 1-based index of the segment being submitted.
        """
        delay = self._base_delay * attempt + segment_index * self._index_step
        return min(delay, self._max_delay)
