"""Unit tests for ChainReconstructionService."""

from __future__ import annotations

import random

import pytest

from tests.helpers import BASE_TIME, make_address, make_transaction, make_tx_id, raw_transaction
from verum.application.services.chain_reconstruction_service import (
    ChainReconstructionService,
)
from verum.domain.models.transaction import Transaction
from verum.domain.payloads import (
    CommentPayload,
    LikePayload,
    NotePayload,
    PostPayload,
    StartPayload,
    StoryParams,
    StoryPayload,
    SubscribePayload,
    UnsubscribePayload,
)
from verum.infrastructure.stubs import IndexerStub

TARGET = make_address("target")


def _segment_id(prefix: str, index: int) -> str:
    return make_tx_id(f"{prefix}-{index}")


def _story_txs(
    author: str,
    prefix: str,
    contents: list[str],
    *,
    timestamp: int = BASE_TIME,
    total: int | None = -1,
    final: bool = True,
) -> list[Transaction]:
    """Build a story's segment transactions; total=-1 declares len(contents)."""
    declared = len(contents) if total == -1 else total
    txs = []
    for index, content in enumerate(contents, start=1):
        payload = StoryPayload(
            version="0.3",
            timestamp=timestamp + index,
            content=content,
            parent_id=_segment_id(prefix, index - 1) if index > 1 else None,
            params=StoryParams(
                segment=index,
                total=declared,
                is_final=final and index == len(contents),
            ),
        )
        txs.append(
            make_transaction(
                _segment_id(prefix, index), author, payload, block_time=timestamp + index
            )
        )
    return txs


@pytest.fixture
def service() -> ChainReconstructionService:
    return ChainReconstructionService()


class TestStories:
    """Tests for story assembly."""

    async def test_complete_story_in_any_order(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = _story_txs(author, "s", ["Once ", "upon ", "a time."])
        random.Random(7).shuffle(txs)

        result = await service.reconstruct(txs)

        assert len(result.stories) == 1
        story = result.stories[0]
        assert story.full_content == "Once upon a time."
        assert story.first_segment_id == _segment_id("s", 1)
        assert story.segment_ids == tuple(_segment_id("s", i) for i in (1, 2, 3))
        assert story.declared_total == 3
        assert story.is_complete
        assert result.incomplete == ()
        assert result.story_by_id(_segment_id("s", 1)) is story

    async def test_single_final_segment_is_a_story(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        result = await service.reconstruct(_story_txs(author, "one", ["Short."], total=None))

        assert [story.full_content for story in result.stories] == ["Short."]

    async def test_missing_middle_segment_hides_story(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        """Partial stories are never exposed."""
        txs = _story_txs(author, "s", ["Once ", "upon ", "a time."])
        del txs[1]

        result = await service.reconstruct(txs)

        assert result.stories == ()
        missing = [error for error in result.incomplete if error.missing_ids]
        assert len(missing) == 1
        assert missing[0].missing_ids == (_segment_id("s", 2),)
        assert missing[0].root_id == _segment_id("s", 3)
        assert missing[0].author_address == author

    async def test_missing_final_segment_hides_story(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = _story_txs(author, "s", ["Once ", "upon ", "a time."])[:2]

        result = await service.reconstruct(txs)

        assert result.stories == ()
        assert [error.reason for error in result.incomplete] == ["segment 2 is not final"]
        assert result.incomplete[0].root_id == _segment_id("s", 1)

    async def test_declared_total_mismatch(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = _story_txs(author, "s", ["Once ", "upon."], total=3)

        result = await service.reconstruct(txs)

        assert result.stories == ()
        assert result.incomplete[0].reason == "expected 3 segments, found 2"

    async def test_foreign_segment_is_not_attached(
        self, service: ChainReconstructionService, author: str, reader: str
    ) -> None:
        """A segment by another author cannot extend someone's story."""
        txs = _story_txs(author, "s", ["Once ", "upon a time."])
        intruder = make_transaction(
            make_tx_id("intruder"),
            reader,
            StoryPayload(
                version="0.3",
                timestamp=BASE_TIME + 9,
                content=" The end?",
                parent_id=_segment_id("s", 2),
                params=StoryParams(segment=3, total=3, is_final=True),
            ),
        )

        result = await service.reconstruct(txs + [intruder])

        assert [story.full_content for story in result.stories] == ["Once upon a time."]

    async def test_duplicate_transactions_are_ignored(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = _story_txs(author, "s", ["Once ", "upon a time."])

        result = await service.reconstruct(txs + txs)

        assert len(result.stories) == 1
        assert len(result.stories[0].segments) == 2

    async def test_stories_newest_first(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        old = _story_txs(author, "old", ["Old."], timestamp=BASE_TIME)
        new = _story_txs(author, "new", ["New."], timestamp=BASE_TIME + 100)

        result = await service.reconstruct(old + new)

        assert [story.full_content for story in result.stories] == ["New.", "Old."]

    async def test_missing_parent_is_fetched(self, author: str) -> None:
        indexer = IndexerStub()
        txs = _story_txs(author, "s", ["Once ", "upon ", "a time."])
        indexer.seed_transactions(txs)
        service = ChainReconstructionService(indexer)

        result = await service.reconstruct(txs[1:])

        assert [story.full_content for story in result.stories] == ["Once upon a time."]
        assert indexer.id_queries == [_segment_id("s", 1)]

    async def test_fetch_rounds_are_bounded(self, author: str) -> None:
        """Each round only reaches one parent further back."""
        indexer = IndexerStub()
        txs = _story_txs(author, "s", ["Once ", "upon ", "a time."])
        indexer.seed_transactions(txs)
        service = ChainReconstructionService(indexer, max_parent_fetches=1)

        result = await service.reconstruct(txs[2:])

        assert result.stories == ()
        assert result.incomplete[0].missing_ids == (_segment_id("s", 1),)

    async def test_no_fetch_when_disabled(self, author: str) -> None:
        indexer = IndexerStub()
        txs = _story_txs(author, "s", ["Once ", "upon a time."])
        indexer.seed_transactions(txs)
        service = ChainReconstructionService(indexer, max_parent_fetches=0)

        result = await service.reconstruct(txs[1:])

        assert result.stories == ()
        assert indexer.id_queries == []

    async def test_fetched_parent_must_share_author(
        self, author: str, reader: str
    ) -> None:
        indexer = IndexerStub()
        txs = _story_txs(author, "s", ["Once ", "upon a time."])
        forged = _story_txs(reader, "s", ["Forged "])[0]
        indexer.add_transaction(forged)
        service = ChainReconstructionService(indexer)

        result = await service.reconstruct(txs[1:])

        assert result.stories == ()

    def test_negative_fetch_rounds_rejected(self) -> None:
        with pytest.raises(ValueError):
            ChainReconstructionService(max_parent_fetches=-1)


class TestFeedItems:
    """Tests for posts, comments, likes, notes and profiles."""

    async def test_posts_newest_first(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = [
            make_transaction(
                make_tx_id(f"p{i}"),
                author,
                PostPayload(version="0.3", timestamp=BASE_TIME + i, content=f"post {i}"),
                block_time=BASE_TIME + i,
            )
            for i in range(3)
        ]

        result = await service.reconstruct(txs)

        assert [post.content for post in result.posts] == ["post 2", "post 1", "post 0"]

    async def test_comments_grouped_oldest_first(
        self, service: ChainReconstructionService, author: str, reader: str
    ) -> None:
        target = make_tx_id("post")
        txs = [
            make_transaction(
                make_tx_id(f"c{i}"),
                reader,
                CommentPayload(
                    version="0.3",
                    timestamp=BASE_TIME + 10 - i,
                    content=f"comment {i}",
                    parent_id=target,
                ),
            )
            for i in range(3)
        ]

        result = await service.reconstruct(txs)

        assert [c.content for c in result.comments_by_target[target]] == [
            "comment 2",
            "comment 1",
            "comment 0",
        ]

    async def test_likes_counted_once_per_author(
        self, service: ChainReconstructionService, author: str, reader: str
    ) -> None:
        target = make_tx_id("post")

        def like(seed: str, liker: str) -> Transaction:
            return make_transaction(
                make_tx_id(seed),
                liker,
                LikePayload(version="0.3", timestamp=BASE_TIME, parent_id=target),
            )

        result = await service.reconstruct(
            [like("l1", reader), like("l2", reader), like("l3", author)]
        )

        likes = result.likes_by_target[target]
        assert {like.author_address for like in likes} == {reader, author}
        assert len(likes) == 2

    async def test_notes_filtered_by_viewer(
        self, service: ChainReconstructionService, author: str, reader: str
    ) -> None:
        txs = [
            make_transaction(
                make_tx_id("n1"),
                author,
                NotePayload(version="0.3", timestamp=BASE_TIME, content="bWluZQ=="),
            ),
            make_transaction(
                make_tx_id("n2"),
                reader,
                NotePayload(version="0.3", timestamp=BASE_TIME, content="dGhlaXJz"),
            ),
        ]

        everyone = await service.reconstruct(txs)
        mine = await service.reconstruct(txs, viewer_address=author)

        assert len(everyone.notes) == 2
        assert [note.ciphertext for note in mine.notes] == ["bWluZQ=="]

    async def test_latest_profile_wins(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        def start(seed: str, timestamp: int, content: str) -> Transaction:
            return make_transaction(
                make_tx_id(seed),
                author,
                StartPayload(version="0.3", timestamp=timestamp, content=content),
            )

        result = await service.reconstruct(
            [
                start("new", BASE_TIME + 5, '{"nickname":"alice2","avatar":"QQ=="}'),
                start("old", BASE_TIME, '{"nickname":"alice"}'),
                start("broken", BASE_TIME + 9, "not json"),
            ]
        )

        profile = result.profiles[author]
        assert profile.nickname == "alice2"
        assert profile.avatar == "QQ=="
        assert profile.tx_id == make_tx_id("new")

    async def test_rejected_and_noise_are_skipped(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        post = PostPayload(version="0.3", timestamp=BASE_TIME, content="x")
        txs = [
            make_transaction(make_tx_id("rejected"), author, post, accepted=False),
            raw_transaction(make_tx_id("memo"), author, "thanks for lunch"),
            raw_transaction(
                make_tx_id("future"),
                author,
                {"verum": "7.0", "type": "post", "content": "x", "timestamp": BASE_TIME},
            ),
        ]

        result = await service.reconstruct(txs)

        assert result.posts == ()


class TestSubscriptions:
    """Tests for net subscription state."""

    def _action(
        self,
        author: str,
        seed: str,
        timestamp: int,
        active: bool,
        *,
        block_time: int | None = None,
        after: str | None = None,
    ) -> Transaction:
        cls = SubscribePayload if active else UnsubscribePayload
        return make_transaction(
            make_tx_id(seed),
            author,
            cls(
                version="0.3",
                timestamp=timestamp,
                content=TARGET,
                last_subscribe_id=make_tx_id(after) if after else None,
            ),
            block_time=timestamp if block_time is None else block_time,
            recipient=TARGET,
        )

    async def test_resubscribe_is_active(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = [
            self._action(author, "s1", BASE_TIME, True),
            self._action(author, "u1", BASE_TIME + 1, False),
            self._action(author, "s2", BASE_TIME + 2, True),
        ]

        result = await service.reconstruct(txs)

        edges = result.subscriptions_of(author)
        assert [edge.tx_id for edge in edges] == [make_tx_id("s2")]

    async def test_unsubscribed_is_absent(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = [
            self._action(author, "u1", BASE_TIME + 1, False),
            self._action(author, "s1", BASE_TIME, True),
        ]

        result = await service.reconstruct(txs)

        assert result.subscriptions_of(author) == ()
        assert author not in result.subscriptions_by_subscriber

    async def test_unsubscribe_after_later_stamped_subscribe(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        """An unsubscribe naming the subscribe wins over a later author clock."""
        txs = [
            self._action(author, "s1", BASE_TIME + 10, True, block_time=BASE_TIME + 1),
            self._action(
                author, "u1", BASE_TIME + 5, False, block_time=BASE_TIME + 2, after="s1"
            ),
        ]

        result = await service.reconstruct(txs)

        assert result.subscriptions_of(author) == ()

    async def test_last_subscribe_link_beats_block_time(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = [
            self._action(
                author, "u1", BASE_TIME + 1, False, block_time=BASE_TIME, after="s1"
            ),
            self._action(author, "s1", BASE_TIME, True, block_time=BASE_TIME + 5),
        ]

        result = await service.reconstruct(txs)

        assert result.subscriptions_of(author) == ()

    async def test_unlinked_actions_follow_block_time(
        self, service: ChainReconstructionService, author: str
    ) -> None:
        txs = [
            self._action(author, "s1", BASE_TIME + 10, True, block_time=BASE_TIME + 1),
            self._action(author, "u1", BASE_TIME + 5, False, block_time=BASE_TIME + 2),
            self._action(author, "s2", BASE_TIME, True, block_time=BASE_TIME + 3),
        ]

        result = await service.reconstruct(txs)

        edges = result.subscriptions_of(author)
        assert [edge.tx_id for edge in edges] == [make_tx_id("s2")]
