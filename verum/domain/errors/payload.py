"""Payload errors for the Verum wire format.

Raised by the codec when raw transaction data cannot be read as a
protocol payload, and by writers when a payload breaks protocol rules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from verum.domain.exceptions import VerumError

if TYPE_CHECKING:
    from verum.domain.models.validation import ValidationIssue


class PayloadError(VerumError):
    """Base exception for payload encoding and decoding failures."""

    pass


class PayloadDecodeError(PayloadError):
    """Raised when raw transaction data is not a readable Verum payload.

    Readers normally skip such transactions; the codec's try_decode()
    turns this error into None for them.

    Attributes:
        reason: Short description of what was wrong.
        preview: First characters of the offending input, for logs.
    """

    def __init__(self, reason: str, preview: str = "") -> None:
        """Initialize decode error.

        Args:
            reason: Short description of what was wrong.
            preview: First characters of the offending input.
        """
        self.reason = reason
        self.preview = preview[:64]
        message = f"Cannot decode payload: {reason}"
        if self.preview:
            message += f" (input starts with {self.preview!r})"
        super().__init__(message)


class PayloadTooLargeError(PayloadError):
    """Raised when a built payload exceeds the protocol byte ceiling.

    Writers check this before every submission. Hitting it means the
    chunker produced a segment it should not have, so it is never retried.

    Attributes:
        size: Serialized payload size in bytes.
        limit: Maximum allowed size in bytes.
    """

    def __init__(self, size: int, limit: int) -> None:
        """Initialize payload size error.

        Args:
            size: Serialized payload size in bytes.
            limit: Maximum allowed size in bytes.
        """
        self.size = size
        self.limit = limit
        super().__init__(f"Payload too large: {size} bytes (max {limit})")


class PayloadValidationError(PayloadError):
    """Raised when a payload fails protocol validation before submission.

    Attributes:
        issues: The validation issues found, in discovery order.
    """

    def __init__(self, issues: list[ValidationIssue]) -> None:
        """Initialize validation error.

        Args:
            issues: The validation issues found.
        """
        self.issues = list(issues)
        summary = "; ".join(f"{issue.code}: {issue.message}" for issue in self.issues)
        super().__init__(f"Invalid payload: {summary}")

    @property
    def codes(self) -> list[str]:
        """Return the issue codes, in discovery order."""
        return [issue.code for issue in self.issues]
