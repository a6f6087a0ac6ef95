"""Feed models produced by chain reconstruction.

Every model here is derived from transactions on each reconstruction
pass. Results may grow between passes as more transactions are fetched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from verum.domain.models.story import Story
from verum.domain.models.subscription import SubscriptionEdge

if TYPE_CHECKING:
    from verum.domain.errors.chain import IncompleteChainError


@dataclass(frozen=True, eq=True)
class UserProfile:
    """Profile published by a start transaction.

    Attributes:
        address: Profile owner.
        nickname: Display name.
        avatar: Base64 image data, if any.
        tx_id: Start transaction.
        timestamp: Payload timestamp, Unix seconds.
    """

    address: str
    nickname: str
    avatar: str | None
    tx_id: str
    timestamp: int


@dataclass(frozen=True, eq=True)
class Post:
    """Short text post."""

    tx_id: str
    author_address: str
    content: str
    timestamp: int
    block_time: int


@dataclass(frozen=True, eq=True)
class Comment:
    """Comment on a post or a story's first segment."""

    tx_id: str
    author_address: str
    target_id: str
    content: str
    timestamp: int


@dataclass(frozen=True, eq=True)
class Like:
    """Like of a post or a story's first segment."""

    tx_id: str
    author_address: str
    target_id: str
    timestamp: int


@dataclass(frozen=True, eq=True)
class Note:
    """Private note. The ciphertext is never decrypted here."""

    tx_id: str
    author_address: str
    ciphertext: str
    timestamp: int


@dataclass(frozen=True)
class Reconstruction:
    """Everything one reconstruction pass recovered.

    Attributes:
        posts: Posts, newest first.
        comments_by_target: Comments grouped by the id they reply to,
            oldest first within each group.
        likes_by_target: Likes grouped by the id they like.
        notes: Notes visible to the viewer, newest first.
        stories: Complete stories only, newest first.
        profiles: Latest profile per address.
        subscriptions_by_subscriber: Active subscriptions per subscriber.
        incomplete: Chains dropped from this pass, for diagnostics.
    """

    posts: tuple[Post, ...] = field(default_factory=tuple)
    comments_by_target: dict[str, tuple[Comment, ...]] = field(default_factory=dict)
    likes_by_target: dict[str, tuple[Like, ...]] = field(default_factory=dict)
    notes: tuple[Note, ...] = field(default_factory=tuple)
    stories: tuple[Story, ...] = field(default_factory=tuple)
    profiles: dict[str, UserProfile] = field(default_factory=dict)
    subscriptions_by_subscriber: dict[str, tuple[SubscriptionEdge, ...]] = field(
        default_factory=dict
    )
    incomplete: tuple[IncompleteChainError, ...] = field(default_factory=tuple)

    def story_by_id(self, first_segment_id: str) -> Story | None:
        """Return the complete story with this first segment, if any."""
        for story in self.stories:
            if story.first_segment_id == first_segment_id:
                return story
        return None

    def subscriptions_of(self, subscriber: str) -> tuple[SubscriptionEdge, ...]:
        """Return the active subscriptions of one subscriber."""
        return self.subscriptions_by_subscriber.get(subscriber, ())
