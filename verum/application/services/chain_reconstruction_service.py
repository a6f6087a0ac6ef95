"""Chain reconstruction service - derives the feed from a bag of transactions.

Transactions arrive unordered, possibly duplicated across several
address-indexed fetches, and possibly incomplete. A reconstruction pass
indexes them by id once, then derives:

- posts, comments, likes and notes straight from their payloads,
- profiles from Start payloads,
- net subscription state per subscriber,
- complete stories, by tracing each segment's parent_id back to its
  first segment.

Stories whose chain cannot be closed are left out of the pass and
reported in Reconstruction.incomplete. They may complete on a later pass
once more transactions have been fetched.
"""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from verum.application.ports.indexer import IndexerPort
from verum.application.services.base import LoggingMixin
from verum.domain.errors.chain import IncompleteChainError
from verum.domain.errors.sender import IndexerError
from verum.domain.models.feed import (
    Comment,
    Like,
    Note,
    Post,
    Reconstruction,
    UserProfile,
)
from verum.domain.models.story import Story, StorySegment
from verum.domain.models.subscription import SubscriptionEdge
from verum.domain.models.transaction import Transaction
from verum.domain.payloads import (
    CommentPayload,
    LikePayload,
    NotePayload,
    Payload,
    PostPayload,
    StartPayload,
    StoryPayload,
    SubscribePayload,
    UnsubscribePayload,
)
from verum.domain.services.payload_codec import PayloadCodec
from verum.domain.services.subscription_state import (
    LinkedAction,
    net_subscriptions,
    order_actions,
)


@dataclass(frozen=True)
class _Entry:
    """An accepted transaction with its decoded payload."""

    tx: Transaction
    payload: Payload


def _segment_from(entry: _Entry) -> StorySegment:
    payload = entry.payload
    assert isinstance(payload, StoryPayload)
    return StorySegment(
        tx_id=entry.tx.id,
        author_address=entry.tx.author_address,
        content=payload.content,
        timestamp=payload.timestamp,
        segment_index=payload.params.segment,
        total_segments=payload.params.total,
        is_final=payload.params.is_final,
        parent_id=payload.parent_id,
    )


class ChainReconstructionService(LoggingMixin):
    """Reconstructs posts, stories, profiles and subscriptions.

    Without an indexer the pass works only on the transactions it is
    given. With one, a story whose parent chain leaves the given set gets
    at most max_parent_fetches rounds of fetch-by-id for the missing
    parents before it is dropped from the pass.

    Example:
        >>> service = ChainReconstructionService()
        >>> result = await service.reconstruct(transactions)
        >>> [story.full_content for story in result.stories]
    """

    def __init__(
        self,
        indexer: IndexerPort | None = None,
        codec: PayloadCodec | None = None,
        max_parent_fetches: int = 1,
    ) -> None:
        """Initialize the reconstruction service.

        Args:
            indexer: Optional source for missing story parents.
            codec: Payload codec for decoding attachments.
            max_parent_fetches: Fetch rounds allowed for missing parents.
        """
        if max_parent_fetches < 0:
            raise ValueError(
                f"max_parent_fetches must be non-negative, got {max_parent_fetches}"
            )
        self._indexer = indexer
        self._codec = codec or PayloadCodec()
        self._max_parent_fetches = max_parent_fetches
        self._init_logger(component="reader")

    async def reconstruct(
        self,
        transactions: Iterable[Transaction],
        viewer_address: str | None = None,
    ) -> Reconstruction:
        """Run one reconstruction pass.

        Args:
            transactions: Fetched transactions in any order. Duplicates by
                id are allowed; the first occurrence wins.
            viewer_address: When given, only this address's notes are
                returned.

        Returns:
            Reconstruction of everything the transactions describe.
        """
        log = self._log_operation("reconstruct", viewer_address=viewer_address)
        entries = self._index(transactions)

        posts: list[Post] = []
        comments: dict[str, list[Comment]] = defaultdict(list)
        likes: dict[str, list[Like]] = defaultdict(list)
        liked: set[tuple[str, str]] = set()
        notes: list[Note] = []
        profiles: dict[str, UserProfile] = {}
        actions: dict[str, list[LinkedAction]] = defaultdict(list)
        segments: dict[str, _Entry] = {}

        for tx_id, entry in entries.items():
            tx, payload = entry.tx, entry.payload
            if isinstance(payload, StartPayload):
                profile = self._profile_from(entry)
                current = profiles.get(tx.author_address)
                if profile is not None and (
                    current is None or profile.timestamp > current.timestamp
                ):
                    profiles[tx.author_address] = profile
            elif isinstance(payload, PostPayload):
                posts.append(
                    Post(
                        tx_id=tx_id,
                        author_address=tx.author_address,
                        content=payload.content,
                        timestamp=payload.timestamp,
                        block_time=tx.block_time,
                    )
                )
            elif isinstance(payload, CommentPayload):
                comments[payload.parent_id].append(
                    Comment(
                        tx_id=tx_id,
                        author_address=tx.author_address,
                        target_id=payload.parent_id,
                        content=payload.content,
                        timestamp=payload.timestamp,
                    )
                )
            elif isinstance(payload, LikePayload):
                key = (tx.author_address, payload.parent_id)
                if key in liked:
                    continue
                liked.add(key)
                likes[payload.parent_id].append(
                    Like(
                        tx_id=tx_id,
                        author_address=tx.author_address,
                        target_id=payload.parent_id,
                        timestamp=payload.timestamp,
                    )
                )
            elif isinstance(payload, (SubscribePayload, UnsubscribePayload)):
                actions[tx.author_address].append(
                    LinkedAction(
                        edge=SubscriptionEdge(
                            subscriber=tx.author_address,
                            target=payload.content,
                            tx_id=tx_id,
                            timestamp=payload.timestamp,
                            active=isinstance(payload, SubscribePayload),
                        ),
                        previous_id=payload.last_subscribe_id,
                        block_time=tx.block_time,
                    )
                )
            elif isinstance(payload, NotePayload):
                if viewer_address is None or tx.author_address == viewer_address:
                    notes.append(
                        Note(
                            tx_id=tx_id,
                            author_address=tx.author_address,
                            ciphertext=payload.content,
                            timestamp=payload.timestamp,
                        )
                    )
            elif isinstance(payload, StoryPayload):
                segments[tx_id] = entry

        stories, incomplete = await self._assemble_stories(segments)

        subscriptions: dict[str, tuple[SubscriptionEdge, ...]] = {}
        for subscriber, linked in actions.items():
            active = net_subscriptions(subscriber, order_actions(linked))
            if active:
                subscriptions[subscriber] = active

        posts.sort(key=lambda post: (post.timestamp, post.block_time), reverse=True)
        notes.sort(key=lambda note: note.timestamp, reverse=True)

        result = Reconstruction(
            posts=tuple(posts),
            comments_by_target={
                target: tuple(sorted(group, key=lambda c: c.timestamp))
                for target, group in comments.items()
            },
            likes_by_target={target: tuple(group) for target, group in likes.items()},
            notes=tuple(notes),
            stories=tuple(stories),
            profiles=profiles,
            subscriptions_by_subscriber=subscriptions,
            incomplete=tuple(incomplete),
        )
        log.info(
            "reconstruction_completed",
            transactions=len(entries),
            posts=len(result.posts),
            stories=len(result.stories),
            incomplete=len(result.incomplete),
        )
        return result

    def _index(self, transactions: Iterable[Transaction]) -> dict[str, _Entry]:
        """Deduplicate by id and keep accepted, decodable transactions."""
        entries: dict[str, _Entry] = {}
        seen: set[str] = set()
        skipped = 0
        for tx in transactions:
            if tx.id in seen:
                continue
            seen.add(tx.id)
            if not tx.accepted:
                skipped += 1
                continue
            payload = self._codec.try_decode(tx.raw_payload)
            if payload is None:
                skipped += 1
                continue
            entries[tx.id] = _Entry(tx=tx, payload=payload)
        if skipped:
            self._log.debug("transactions_skipped", count=skipped)
        return entries

    def _profile_from(self, entry: _Entry) -> UserProfile | None:
        payload = entry.payload
        assert isinstance(payload, StartPayload)
        try:
            profile = json.loads(payload.content)
        except json.JSONDecodeError:
            self._log.debug("profile_unreadable", tx_id=entry.tx.id)
            return None
        if not isinstance(profile, dict) or not profile.get("nickname"):
            self._log.debug("profile_unreadable", tx_id=entry.tx.id)
            return None
        avatar = profile.get("avatar")
        return UserProfile(
            address=entry.tx.author_address,
            nickname=str(profile["nickname"]),
            avatar=avatar if isinstance(avatar, str) else None,
            tx_id=entry.tx.id,
            timestamp=payload.timestamp,
        )

    async def _assemble_stories(
        self, segments: dict[str, _Entry]
    ) -> tuple[list[Story], list[IncompleteChainError]]:
        """Group segments under their first segment and keep complete groups."""
        await self._fetch_missing_parents(segments)

        roots: dict[str, tuple[str | None, str | None]] = {}
        groups: dict[str, list[StorySegment]] = defaultdict(list)
        orphans: dict[str, list[StorySegment]] = defaultdict(list)

        for tx_id, entry in segments.items():
            root_id, missing_id = self._trace_root(tx_id, segments, roots)
            segment = _segment_from(entry)
            if root_id is not None:
                groups[root_id].append(segment)
            elif missing_id is not None:
                orphans[missing_id].append(segment)

        stories: list[Story] = []
        incomplete: list[IncompleteChainError] = []

        for root_id, group in groups.items():
            outcome = self._story_from(root_id, group)
            if isinstance(outcome, Story):
                stories.append(outcome)
            else:
                incomplete.append(outcome)

        for missing_id, group in orphans.items():
            incomplete.append(
                IncompleteChainError(
                    root_id=min(group, key=lambda s: s.segment_index).tx_id,
                    reason="parent segment not found",
                    author_address=group[0].author_address,
                    missing_ids=(missing_id,),
                )
            )

        for error in incomplete:
            self._log.info(
                "story_dropped_incomplete",
                root_id=error.root_id,
                author=error.author_address,
                reason=error.reason,
                missing_ids=list(error.missing_ids),
            )

        stories.sort(
            key=lambda story: (
                story.timestamp,
                segments[story.first_segment_id].tx.block_time,
            ),
            reverse=True,
        )
        return stories, incomplete

    async def _fetch_missing_parents(self, segments: dict[str, _Entry]) -> None:
        """Pull missing parents from the indexer into segments, in rounds."""
        if self._indexer is None:
            return
        attempted: set[str] = set()
        for _ in range(self._max_parent_fetches):
            wanted = {
                entry.payload.parent_id: entry.tx.author_address
                for entry in segments.values()
                if isinstance(entry.payload, StoryPayload)
                and entry.payload.parent_id is not None
                and entry.payload.parent_id not in segments
                and entry.payload.parent_id not in attempted
            }
            if not wanted:
                return
            for parent_id, author in wanted.items():
                attempted.add(parent_id)
                entry = await self._fetch_parent(parent_id, author)
                if entry is not None:
                    segments[parent_id] = entry

    async def _fetch_parent(self, parent_id: str, author: str) -> _Entry | None:
        assert self._indexer is not None
        try:
            tx = await self._indexer.fetch_by_id(parent_id)
        except IndexerError as e:
            self._log.warning("parent_fetch_failed", tx_id=parent_id, error=str(e))
            return None
        if tx is None or not tx.accepted or tx.author_address != author:
            return None
        payload = self._codec.try_decode(tx.raw_payload)
        if not isinstance(payload, StoryPayload):
            return None
        self._log.debug("parent_fetched", tx_id=parent_id)
        return _Entry(tx=tx, payload=payload)

    @staticmethod
    def _trace_root(
        tx_id: str,
        segments: dict[str, _Entry],
        roots: dict[str, tuple[str | None, str | None]],
    ) -> tuple[str | None, str | None]:
        """Follow parent_id links to the first segment.

        Results are memoized in roots for every segment on the path.

        Returns:
            (root_id, None) when the chain closes, (None, missing_id) when a
            parent is absent, and (None, None) on a cycle or a parent that
            is not a segment by the same author.
        """
        path: list[str] = []
        on_path: set[str] = set()
        current: str | None = tx_id
        author = segments[tx_id].tx.author_address
        result: tuple[str | None, str | None]

        while True:
            entry = segments.get(current)
            if entry is None:
                result = (None, current)
                break
            if entry.tx.author_address != author:
                result = (None, None)
                break
            if current in roots:
                result = roots[current]
                break
            if current in on_path:
                result = (None, None)
                break
            path.append(current)
            on_path.add(current)
            parent_id = entry.payload.parent_id
            if parent_id is None:
                result = (current, None)
                break
            current = parent_id

        for step in path:
            roots[step] = result
        return result

    @staticmethod
    def _story_from(
        root_id: str, group: list[StorySegment]
    ) -> Story | IncompleteChainError:
        """Build a complete story from a group, or describe why it is not one."""
        ordered = sorted(group, key=lambda segment: segment.segment_index)
        author = ordered[0].author_address

        def incomplete(reason: str) -> IncompleteChainError:
            return IncompleteChainError(
                root_id=root_id, reason=reason, author_address=author
            )

        indices = [segment.segment_index for segment in ordered]
        if indices != list(range(1, len(ordered) + 1)):
            return incomplete(f"segment indices {indices} are not contiguous from 1")
        for previous, current in zip(ordered, ordered[1:]):
            if current.parent_id != previous.tx_id:
                return incomplete(
                    f"segment {current.segment_index} does not follow "
                    f"segment {previous.segment_index}"
                )

        declared_total = next(
            (s.total_segments for s in ordered if s.total_segments is not None), None
        )
        last = ordered[-1]
        if not last.is_final:
            return incomplete(f"segment {last.segment_index} is not final")
        if len(ordered) > 1 and declared_total is not None and (
            len(ordered) != declared_total
        ):
            return incomplete(
                f"expected {declared_total} segments, found {len(ordered)}"
            )

        return Story(
            first_segment_id=root_id,
            author_address=author,
            segments=tuple(ordered),
            declared_total=declared_total,
            is_complete=True,
        )
