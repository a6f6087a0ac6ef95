"""Errors raised by the external sender and indexer collaborators.

Adapters translate transport failures into these types so the retry
policy can classify them without knowing the transport.
"""

from __future__ import annotations

from verum.domain.exceptions import VerumError


class SenderError(VerumError):
    """Raised when a transaction submission fails.

    Attributes:
        retryable: True or False if the sender knows whether the failure is
            transient, None to let the retry policy classify the message.
    """

    def __init__(self, message: str, retryable: bool | None = None) -> None:
        """Initialize sender error.

        Args:
            message: Failure description as reported by the wallet or node.
            retryable: Explicit classification, or None if unknown.
        """
        self.retryable = retryable
        super().__init__(message)


class IndexerError(VerumError):
    """Raised when the indexer cannot answer a query.

    Attributes:
        operation: The indexer call that failed.
    """

    def __init__(self, message: str, operation: str = "") -> None:
        """Initialize indexer error.

        Args:
            message: Failure description.
            operation: The indexer call that failed.
        """
        self.operation = operation
        super().__init__(message)
