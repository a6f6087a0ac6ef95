"""Subscription edge model."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, eq=True)
class SubscriptionEdge:
    """A subscribe or unsubscribe action between two addresses.

    Reconstruction outputs only the net state per (subscriber, target)
    pair, so every edge it returns has active=True.

    Attributes:
        subscriber: Address that acted.
        target: Address subscribed to or unsubscribed from.
        tx_id: Transaction recording the action.
        timestamp: Payload timestamp, Unix seconds.
        active: True for subscribe, False for unsubscribe.
    """

    subscriber: str
    target: str
    tx_id: str
    timestamp: int
    active: bool = True
