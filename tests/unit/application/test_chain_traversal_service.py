"""Unit tests for ChainTraversalService.

Chains used below (oldest first, one block per transaction):

    start <- post1 <- sub <- post2 <- unsub      (prev_tx_id)
                      sub <-------------- unsub  (last_subscribe)
"""

from __future__ import annotations

import pytest

from tests.helpers import BASE_TIME, make_address, make_transaction, make_tx_id
from verum.application.services.chain_traversal_service import (
    ChainTraversalService,
    previous_link,
)
from verum.config.protocol_config import TEST_TRAVERSAL_CONFIG
from verum.domain.constants import VERUM_PROTOCOL_CREATION_DATE
from verum.domain.errors.sender import IndexerError
from verum.domain.models.chain import ChainPointers
from verum.domain.models.transaction import Transaction
from verum.domain.payloads import (
    PostPayload,
    StartPayload,
    StoryParams,
    StoryPayload,
    SubscribePayload,
    UnsubscribePayload,
)
from verum.infrastructure.stubs import IndexerStub

TARGET = make_address("target")

START = make_tx_id("start")
POST1 = make_tx_id("post1")
SUB = make_tx_id("sub")
POST2 = make_tx_id("post2")
UNSUB = make_tx_id("unsub")


def _chain(author: str) -> list[Transaction]:
    common = {"version": "0.3", "start_tx_id": START}
    return [
        make_transaction(
            START,
            author,
            StartPayload(version="0.3", timestamp=BASE_TIME, content='{"nickname":"a"}'),
            block_time=BASE_TIME,
        ),
        make_transaction(
            POST1,
            author,
            PostPayload(timestamp=BASE_TIME + 1, content="one", prev_tx_id=START, **common),
            block_time=BASE_TIME + 1,
        ),
        make_transaction(
            SUB,
            author,
            SubscribePayload(
                timestamp=BASE_TIME + 2, content=TARGET, prev_tx_id=POST1, **common
            ),
            block_time=BASE_TIME + 2,
            recipient=TARGET,
        ),
        make_transaction(
            POST2,
            author,
            PostPayload(
                timestamp=BASE_TIME + 3,
                content="two",
                prev_tx_id=SUB,
                last_subscribe_id=SUB,
                **common,
            ),
            block_time=BASE_TIME + 3,
        ),
        make_transaction(
            UNSUB,
            author,
            UnsubscribePayload(
                timestamp=BASE_TIME + 4,
                content=TARGET,
                prev_tx_id=POST2,
                last_subscribe_id=SUB,
                **common,
            ),
            block_time=BASE_TIME + 4,
            recipient=TARGET,
        ),
    ]


def _ids(transactions) -> list[str]:
    return [tx.id for tx in transactions]


class _FailingByIdIndexer(IndexerStub):
    """Indexer whose id lookups always fail."""

    async def fetch_by_id(self, tx_id: str) -> Transaction | None:
        self.id_queries.append(tx_id)
        raise IndexerError("indexer unavailable", operation="fetch_by_id")


class TestPreviousLink:
    """Tests for the activity-chain predecessor rule."""

    def test_start_has_no_predecessor(self) -> None:
        start = StartPayload(version="0.3", timestamp=BASE_TIME, content="{}")

        assert previous_link(start) is None

    def test_prev_tx_id_is_the_predecessor(self) -> None:
        post = PostPayload(version="0.3", timestamp=BASE_TIME, content="x", prev_tx_id=POST1)

        assert previous_link(post) == POST1

    def test_story_continuation_links_to_previous_segment(self) -> None:
        segment = StoryPayload(
            version="0.3",
            timestamp=BASE_TIME,
            content="more",
            parent_id=POST1,
            params=StoryParams(segment=2, total=2, is_final=True),
        )

        assert previous_link(segment) == POST1


class TestLatestPointers:
    """Tests for chain head resolution."""

    async def test_unknown_address_has_empty_pointers(
        self, traversal: ChainTraversalService, author: str
    ) -> None:
        assert await traversal.latest_pointers(author) == ChainPointers()

    async def test_heads_of_both_chains(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        indexer.seed_transactions(_chain(author))

        pointers = await traversal.latest_pointers(author)

        assert pointers == ChainPointers(
            last_tx_id=UNSUB, last_subscribe_id=UNSUB, start_tx_id=START
        )

    async def test_links_break_block_time_ties(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        """Of two transactions in one block, the head is the one not referenced."""
        later = make_tx_id("later")
        earlier = make_tx_id("earlier")
        indexer.seed_transactions(
            [
                make_transaction(
                    later,
                    author,
                    PostPayload(
                        version="0.3", timestamp=BASE_TIME, content="b", prev_tx_id=earlier
                    ),
                ),
                make_transaction(
                    earlier,
                    author,
                    PostPayload(version="0.3", timestamp=BASE_TIME, content="a"),
                ),
            ]
        )

        pointers = await traversal.latest_pointers(author)

        assert pointers.last_tx_id == later

    async def test_pointers_fall_back_to_payload_links(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        """Heads outside the window are taken from the newest payload."""
        only = make_tx_id("only")
        indexer.add_transaction(
            make_transaction(
                only,
                author,
                PostPayload(
                    version="0.3",
                    timestamp=BASE_TIME,
                    content="x",
                    prev_tx_id=POST1,
                    last_subscribe_id=SUB,
                    start_tx_id=START,
                ),
            )
        )

        pointers = await traversal.latest_pointers(author)

        assert pointers == ChainPointers(
            last_tx_id=only, last_subscribe_id=SUB, start_tx_id=START
        )

    async def test_ignores_foreign_rejected_and_noise(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str, reader: str
    ) -> None:
        post = PostPayload(version="0.3", timestamp=BASE_TIME, content="x")
        indexer.seed_transactions(
            [
                make_transaction(make_tx_id("foreign"), reader, post, recipient=author),
                make_transaction(make_tx_id("rejected"), author, post, accepted=False),
                make_transaction(make_tx_id("plain"), author, None),
                make_transaction(
                    make_tx_id("ancient"),
                    author,
                    post,
                    block_time=VERUM_PROTOCOL_CREATION_DATE - 1,
                ),
            ]
        )

        assert await traversal.latest_pointers(author) == ChainPointers()

    async def test_indexer_failure_propagates(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        indexer.fail_next(IndexerError("down"))

        with pytest.raises(IndexerError):
            await traversal.latest_pointers(author)


class TestWalkChain:
    """Tests for walking chains backwards."""

    async def test_walks_both_chains_newest_first(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        indexer.seed_transactions(_chain(author))

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [UNSUB, POST2, SUB, POST1, START]
        assert _ids(walk.subscription_transactions) == [UNSUB, SUB]
        assert not walk.truncated
        assert walk.missing_ids == ()
        assert indexer.address_queries == [(author, TEST_TRAVERSAL_CONFIG.scan_limit, None)]

    async def test_max_count_limits_each_chain(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        indexer.seed_transactions(_chain(author))

        walk = await traversal.walk_chain(author, max_count=2)

        assert _ids(walk.transactions) == [UNSUB, POST2]
        assert _ids(walk.subscription_transactions) == [UNSUB, SUB]

    async def test_zero_max_count_walks_nothing(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        """max_count=0 is a limit, not a request for the default."""
        indexer.seed_transactions(_chain(author))

        walk = await traversal.walk_chain(author, max_count=0)

        assert walk.transactions == ()
        assert walk.subscription_transactions == ()
        assert not walk.truncated

    async def test_since_time_stops_the_walk(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        indexer.seed_transactions(_chain(author))

        walk = await traversal.walk_chain(author, since_time=BASE_TIME + 1)

        assert _ids(walk.transactions) == [UNSUB, POST2, SUB, POST1]
        assert not walk.truncated

    async def test_missing_reference_truncates_walk(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        """A gap yields the partial chain, not an error."""
        indexer.seed_transactions(_chain(author))
        indexer.remove_transaction(POST1)

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [UNSUB, POST2, SUB]
        assert walk.truncated
        assert walk.missing_ids == (POST1,)

    async def test_missing_reference_is_fetched_once(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        """Both chains reference SUB; the indexer is asked for it once."""
        indexer.seed_transactions(_chain(author))
        indexer.remove_transaction(SUB)

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [UNSUB, POST2]
        assert _ids(walk.subscription_transactions) == [UNSUB]
        assert walk.missing_ids == (SUB,)
        assert indexer.id_queries == [SUB]

    async def test_reference_outside_window_is_fetched(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        indexer.seed_transactions(_chain(author))
        indexer.hide_from_address_queries(POST1)

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [UNSUB, POST2, SUB, POST1, START]
        assert not walk.truncated
        assert indexer.id_queries == [POST1]

    async def test_failed_supplemental_fetch_truncates(self, author: str) -> None:
        indexer = _FailingByIdIndexer()
        indexer.seed_transactions(_chain(author))
        indexer.hide_from_address_queries(POST1)
        traversal = ChainTraversalService(indexer, config=TEST_TRAVERSAL_CONFIG)

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [UNSUB, POST2, SUB]
        assert walk.truncated
        assert walk.missing_ids == (POST1,)

    async def test_cycle_stops_the_walk(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        a, b = make_tx_id("a"), make_tx_id("b")
        indexer.seed_transactions(
            [
                make_transaction(
                    a,
                    author,
                    PostPayload(version="0.3", timestamp=BASE_TIME, content="a", prev_tx_id=b),
                    block_time=BASE_TIME + 1,
                ),
                make_transaction(
                    b,
                    author,
                    PostPayload(version="0.3", timestamp=BASE_TIME, content="b", prev_tx_id=a),
                ),
            ]
        )

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [a, b]
        assert not walk.truncated

    async def test_story_segments_are_chained(
        self, traversal: ChainTraversalService, indexer: IndexerStub, author: str
    ) -> None:
        seg1, seg2 = make_tx_id("seg1"), make_tx_id("seg2")
        chain = _chain(author)[:2] + [
            make_transaction(
                seg1,
                author,
                StoryPayload(
                    version="0.3",
                    timestamp=BASE_TIME + 5,
                    content="Once ",
                    prev_tx_id=POST1,
                    start_tx_id=START,
                    params=StoryParams(segment=1, total=2, is_final=False),
                ),
                block_time=BASE_TIME + 5,
            ),
            make_transaction(
                seg2,
                author,
                StoryPayload(
                    version="0.3",
                    timestamp=BASE_TIME + 6,
                    content="upon a time",
                    parent_id=seg1,
                    start_tx_id=START,
                    params=StoryParams(segment=2, total=2, is_final=True),
                ),
                block_time=BASE_TIME + 6,
            ),
        ]
        indexer.seed_transactions(chain)

        walk = await traversal.walk_chain(author)

        assert _ids(walk.transactions) == [seg2, seg1, POST1, START]
        assert walk.subscription_transactions == ()

    async def test_empty_address(
        self, traversal: ChainTraversalService, author: str
    ) -> None:
        walk = await traversal.walk_chain(author)

        assert walk.address == author
        assert walk.transactions == ()
        assert not walk.truncated
