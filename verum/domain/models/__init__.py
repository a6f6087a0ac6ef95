"""Domain models for Verum.

Frozen value objects with no I/O dependencies.
"""

from verum.domain.models.chain import ChainPointers, ChainWalk
from verum.domain.models.chunk import Chunk
from verum.domain.models.feed import (
    Comment,
    Like,
    Note,
    Post,
    Reconstruction,
    UserProfile,
)
from verum.domain.models.publish import (
    IDLE_PROGRESS,
    PublishPhase,
    PublishProgress,
    PublishState,
)
from verum.domain.models.story import Story, StorySegment
from verum.domain.models.subscription import SubscriptionEdge
from verum.domain.models.transaction import Transaction
from verum.domain.models.validation import ValidationIssue

__all__: list[str] = [
    "IDLE_PROGRESS",
    "ChainPointers",
    "ChainWalk",
    "Chunk",
    "Comment",
    "Like",
    "Note",
    "Post",
    "PublishPhase",
    "PublishProgress",
    "PublishState",
    "Reconstruction",
    "Story",
    "StorySegment",
    "SubscriptionEdge",
    "Transaction",
    "UserProfile",
    "ValidationIssue",
]
