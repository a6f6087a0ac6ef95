"""Chain pointer models.

An author's transactions form two interleaved backward-linked lists:
prev_tx_id links every action to the one before it, and
last_subscribe_id links subscribe and unsubscribe actions to each other.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from verum.domain.models.transaction import Transaction


@dataclass(frozen=True, eq=True)
class ChainPointers:
    """Heads of an author's chains, used to link the next payload.

    Attributes:
        last_tx_id: Author's most recent protocol transaction.
        last_subscribe_id: Author's most recent subscribe or unsubscribe.
        start_tx_id: Author's start (profile) transaction.
    """

    last_tx_id: str | None = None
    last_subscribe_id: str | None = None
    start_tx_id: str | None = None

    @property
    def is_empty(self) -> bool:
        """True when the author has no known chain yet."""
        return (
            self.last_tx_id is None
            and self.last_subscribe_id is None
            and self.start_tx_id is None
        )


@dataclass(frozen=True)
class ChainWalk:
    """Result of walking an author's chains backwards.

    A truncated walk is still valid: it holds every transaction reached
    before a referenced transaction could not be found.

    Attributes:
        address: Author whose chain was walked.
        transactions: Activity chain, newest first.
        subscription_transactions: Subscribe/unsubscribe chain, newest first.
        truncated: True if a referenced transaction was missing.
        missing_ids: Referenced ids that could not be fetched.
    """

    address: str
    transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    subscription_transactions: tuple[Transaction, ...] = field(default_factory=tuple)
    truncated: bool = False
    missing_ids: tuple[str, ...] = field(default_factory=tuple)
