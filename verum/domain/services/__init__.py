"""Domain services for Verum.

Pure protocol logic: encoding, chunking, building and validating
payloads, subscription net state and failure classification.
"""

from verum.domain.services.content_chunker import ContentChunker
from verum.domain.services.payload_builder import PayloadBuilder
from verum.domain.services.payload_codec import PayloadCodec
from verum.domain.services.payload_validator import PayloadValidator
from verum.domain.services.retry_policy import (
    FailureClass,
    FailureClassification,
    RetryPolicy,
)
from verum.domain.services.subscription_state import (
    LinkedAction,
    is_subscribed,
    net_subscriptions,
    order_actions,
)

__all__: list[str] = [
    "ContentChunker",
    "FailureClass",
    "FailureClassification",
    "LinkedAction",
    "PayloadBuilder",
    "PayloadCodec",
    "PayloadValidator",
    "RetryPolicy",
    "is_subscribed",
    "net_subscriptions",
    "order_actions",
]
