"""Indexer port (read side of the chain).

HTTP transport to a real indexer is outside the engine. Implementations
translate their transport errors into IndexerError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from verum.domain.models.transaction import Transaction


@runtime_checkable
class IndexerPort(Protocol):
    """Protocol for fetching transactions."""

    async def fetch_by_address(
        self,
        address: str,
        limit: int,
        since_time: int | None = None,
    ) -> list[Transaction]:
        """Fetch transactions sent from or to an address.

        Args:
            address: Address to query.
            limit: Maximum number of transactions to return.
            since_time: Only return transactions with block_time at or
                after this Unix time.

        Returns:
            Transactions, newest first.

        Raises:
            IndexerError: If the query failed.
        """
        ...

    async def fetch_by_id(self, tx_id: str) -> Transaction | None:
        """Fetch one transaction by id.

        Returns:
            The transaction, or None if the indexer does not know it yet.

        Raises:
            IndexerError: If the query failed.
        """
        ...
