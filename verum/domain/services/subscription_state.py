"""Net subscription state from a subscriber's subscribe/unsubscribe history.

A subscriber's actions are replayed oldest first. A subscribe (re)creates
the record for its target and lifts any earlier unsubscribe; an
unsubscribe removes the record and marks the target unsubscribed. Only
records whose target is not marked survive. Self-subscriptions are ignored.

Replay order comes from the actions themselves: every subscribe and
unsubscribe names the author's previous one in last_subscribe, so
order_actions() follows those links and uses (block_time, timestamp) only
where no link decides. Payload timestamps are client clocks and are not
trusted to order actions on their own.
"""

from __future__ import annotations

import heapq
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from verum.domain.models.subscription import SubscriptionEdge


@dataclass(frozen=True)
class LinkedAction:
    """A subscription action with its position hints.

    Attributes:
        edge: The action.
        previous_id: Transaction id of the author's previous subscribe or
            unsubscribe, if the payload named one.
        block_time: Block time of the action's transaction.
    """

    edge: SubscriptionEdge
    previous_id: str | None
    block_time: int

    @property
    def fallback_key(self) -> tuple[int, int, str]:
        return (self.block_time, self.edge.timestamp, self.edge.tx_id)


def order_actions(actions: Iterable[LinkedAction]) -> list[SubscriptionEdge]:
    """Order actions oldest first.

    An action always comes after the action its previous_id names, when
    that action is among the input. Between actions no link orders, the
    earlier (block_time, timestamp) goes first, then the smaller tx id.

    Args:
        actions: Actions of one subscriber, in any order. Duplicate tx ids
            are dropped.

    Returns:
        The edges in replay order.
    """
    by_id: dict[str, LinkedAction] = {}
    for action in actions:
        by_id.setdefault(action.edge.tx_id, action)

    followers: dict[str, list[LinkedAction]] = defaultdict(list)
    linked: set[str] = set()
    for tx_id, action in by_id.items():
        previous = action.previous_id
        if previous is not None and previous in by_id and previous != tx_id:
            followers[previous].append(action)
            linked.add(tx_id)

    ready = [
        (action.fallback_key, tx_id)
        for tx_id, action in by_id.items()
        if tx_id not in linked
    ]
    heapq.heapify(ready)

    ordered: list[SubscriptionEdge] = []
    done: set[str] = set()
    while len(done) < len(by_id):
        if not ready:
            # Only a link cycle is left; release its oldest member
            tx_id = min(
                (t for t in by_id if t not in done),
                key=lambda t: by_id[t].fallback_key,
            )
            heapq.heappush(ready, (by_id[tx_id].fallback_key, tx_id))
        _, tx_id = heapq.heappop(ready)
        if tx_id in done:
            continue
        done.add(tx_id)
        ordered.append(by_id[tx_id].edge)
        for follower in followers.get(tx_id, ()):
            heapq.heappush(ready, (follower.fallback_key, follower.edge.tx_id))

    return ordered


def net_subscriptions(
    subscriber: str,
    actions: Iterable[SubscriptionEdge],
) -> tuple[SubscriptionEdge, ...]:
    """Replay subscription actions and return the active subscriptions.

    Args:
        subscriber: Address whose actions are replayed. Actions by any
            other address are ignored.
        actions: Subscribe (active=True) and unsubscribe (active=False)
            edges, oldest first. Use order_actions() to put on-chain
            actions in this order.

    Returns:
        Active subscriptions, most recently subscribed first.
    """
    records: dict[str, SubscriptionEdge] = {}
    unsubscribed: set[str] = set()
    for edge in actions:
        if edge.subscriber != subscriber or edge.target == subscriber:
            continue
        records.pop(edge.target, None)
        if edge.active:
            unsubscribed.discard(edge.target)
            records[edge.target] = edge
        else:
            unsubscribed.add(edge.target)

    active = [edge for target, edge in records.items() if target not in unsubscribed]
    active.reverse()
    return tuple(active)


def is_subscribed(
    subscriber: str,
    target: str,
    actions: Iterable[SubscriptionEdge],
) -> bool:
    """True if subscriber's net state towards target is subscribed."""
    return any(
        edge.target == target for edge in net_subscriptions(subscriber, actions)
    )
