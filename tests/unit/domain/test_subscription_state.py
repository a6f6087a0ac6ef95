"""Unit tests for net subscription state."""

from __future__ import annotations

from tests.helpers import make_address, make_tx_id
from verum.domain.models.subscription import SubscriptionEdge
from verum.domain.services.subscription_state import (
    LinkedAction,
    is_subscribed,
    net_subscriptions,
    order_actions,
)

ALICE = make_address("alice")
BOB = make_address("bob")
CAROL = make_address("carol")


def _edge(target: str, timestamp: int, active: bool, subscriber: str = ALICE) -> SubscriptionEdge:
    return SubscriptionEdge(
        subscriber=subscriber,
        target=target,
        tx_id=make_tx_id(f"{subscriber}-{target}-{timestamp}"),
        timestamp=timestamp,
        active=active,
    )


class TestNetSubscriptions:
    """Replay of subscribe/unsubscribe history."""

    def test_subscribe_is_active(self) -> None:
        edges = net_subscriptions(ALICE, [_edge(BOB, 10, True)])

        assert [edge.target for edge in edges] == [BOB]

    def test_subscribe_then_unsubscribe_is_absent(self) -> None:
        actions = [_edge(BOB, 10, True), _edge(BOB, 20, False)]

        assert net_subscriptions(ALICE, actions) == ()
        assert not is_subscribed(ALICE, BOB, actions)

    def test_resubscribe_is_active(self) -> None:
        """sub, unsub, sub leaves the latest subscribe active."""
        latest = _edge(BOB, 30, True)
        actions = [_edge(BOB, 10, True), _edge(BOB, 20, False), latest]

        assert net_subscriptions(ALICE, actions) == (latest,)

    def test_replays_in_given_order(self) -> None:
        """Timestamps do not reorder the input."""
        actions = [_edge(BOB, 30, True), _edge(BOB, 10, False)]

        assert not is_subscribed(ALICE, BOB, actions)

    def test_unsubscribe_without_subscribe(self) -> None:
        assert net_subscriptions(ALICE, [_edge(BOB, 10, False)]) == ()

    def test_self_subscription_is_ignored(self) -> None:
        assert net_subscriptions(ALICE, [_edge(ALICE, 10, True)]) == ()

    def test_other_subscribers_are_ignored(self) -> None:
        actions = [_edge(CAROL, 10, True, subscriber=BOB)]

        assert net_subscriptions(ALICE, actions) == ()

    def test_most_recent_first(self) -> None:
        actions = [_edge(BOB, 10, True), _edge(CAROL, 20, True)]

        edges = net_subscriptions(ALICE, actions)

        assert [edge.target for edge in edges] == [CAROL, BOB]
        assert all(edge.active for edge in edges)

    def test_resubscribe_moves_to_front(self) -> None:
        first_bob = _edge(BOB, 10, True)
        carol = _edge(CAROL, 20, True)
        second_bob = _edge(BOB, 5, True)

        edges = net_subscriptions(ALICE, [first_bob, carol, second_bob])

        assert edges == (second_bob, carol)


def _linked(
    edge: SubscriptionEdge, block_time: int, after: SubscriptionEdge | None = None
) -> LinkedAction:
    return LinkedAction(
        edge=edge,
        previous_id=after.tx_id if after is not None else None,
        block_time=block_time,
    )


class TestOrderActions:
    """Ordering of on-chain actions before replay."""

    def test_links_win_over_clocks(self) -> None:
        subscribe = _edge(BOB, 10, True)
        unsubscribe = _edge(BOB, 5, False)

        ordered = order_actions(
            [_linked(unsubscribe, 1, after=subscribe), _linked(subscribe, 2)]
        )

        assert ordered == [subscribe, unsubscribe]

    def test_unlinked_use_block_time_then_timestamp(self) -> None:
        late_block = _edge(BOB, 1, True)
        early_stamp = _edge(CAROL, 5, True)
        late_stamp = _edge(CAROL, 9, False)

        ordered = order_actions(
            [_linked(late_block, 2), _linked(late_stamp, 1), _linked(early_stamp, 1)]
        )

        assert ordered == [early_stamp, late_stamp, late_block]

    def test_unresolved_link_falls_back(self) -> None:
        missing = _edge(CAROL, 1, True)
        first = _edge(BOB, 20, True)
        second = _edge(BOB, 10, False)

        ordered = order_actions(
            [_linked(second, 2, after=missing), _linked(first, 1)]
        )

        assert ordered == [first, second]

    def test_chain_interleaves_with_unlinked(self) -> None:
        a = _edge(BOB, 10, True)
        b = _edge(BOB, 11, False)
        c = _edge(CAROL, 12, True)

        ordered = order_actions(
            [_linked(b, 3, after=a), _linked(c, 2), _linked(a, 1)]
        )

        assert ordered == [a, c, b]

    def test_duplicates_are_dropped(self) -> None:
        edge = _edge(BOB, 10, True)

        assert order_actions([_linked(edge, 1), _linked(edge, 1)]) == [edge]

    def test_link_cycle_still_yields_every_action(self) -> None:
        a = _edge(BOB, 10, True)
        b = _edge(BOB, 20, False)

        ordered = order_actions([_linked(a, 1, after=b), _linked(b, 2, after=a)])

        assert ordered == [a, b]
