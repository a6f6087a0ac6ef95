"""Domain errors for Verum.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from VerumError.
"""

from verum.domain.errors.chain import IncompleteChainError, SelfSubscriptionError
from verum.domain.errors.chunking import ChunkingError, ContentTooLargeError
from verum.domain.errors.payload import (
    PayloadDecodeError,
    PayloadError,
    PayloadTooLargeError,
    PayloadValidationError,
)
from verum.domain.errors.publish import (
    EmptyContentError,
    NoPublishInProgressError,
    PublishCancelledError,
    PublishContentMismatchError,
    PublishError,
    PublishFailedError,
    PublishInProgressError,
    PublishStateStorageError,
    UnauthenticatedError,
)
from verum.domain.errors.sender import IndexerError, SenderError

__all__: list[str] = [
    "ChunkingError",
    "ContentTooLargeError",
    "EmptyContentError",
    "IncompleteChainError",
    "IndexerError",
    "NoPublishInProgressError",
    "PayloadDecodeError",
    "PayloadError",
    "PayloadTooLargeError",
    "PayloadValidationError",
    "PublishCancelledError",
    "PublishContentMismatchError",
    "PublishError",
    "PublishFailedError",
    "PublishInProgressError",
    "PublishStateStorageError",
    "SelfSubscriptionError",
    "SenderError",
    "UnauthenticatedError",
]
