"""IndexerStub for testing and offline tooling.

In-memory implementation of IndexerPort. Transactions are held by id and
served newest first by block time, like a real address-indexed query.
"""

from __future__ import annotations

from collections import deque

from verum.application.ports.indexer import IndexerPort
from verum.domain.errors.sender import IndexerError
from verum.domain.models.transaction import Transaction


class IndexerStub(IndexerPort):
    """In-memory stub implementation of IndexerPort.

    Records every query so tests can assert how often the indexer was
    asked, for example that a missing reference is fetched only once.

    Example:
        >>> stub = IndexerStub()
        >>> stub.seed_transactions([tx1, tx2])
        >>> await stub.fetch_by_address(address, limit=10)
        [tx2, tx1]
    """

    def __init__(self) -> None:
        """Initialize empty indexer."""
        self._transactions: dict[str, Transaction] = {}
        self._hidden: set[str] = set()
        self._failures: deque[IndexerError] = deque()
        self.address_queries: list[tuple[str, int, int | None]] = []
        self.id_queries: list[str] = []

    def seed_transactions(self, transactions: list[Transaction]) -> None:
        """Add transactions, replacing any with the same id.

        Args:
            transactions: Transactions to serve.
        """
        for tx in transactions:
            self._transactions[tx.id] = tx

    def add_transaction(self, transaction: Transaction) -> None:
        """Add or replace a single transaction."""
        self._transactions[transaction.id] = transaction

    def remove_transaction(self, tx_id: str) -> None:
        """Forget a transaction entirely."""
        self._transactions.pop(tx_id, None)
        self._hidden.discard(tx_id)

    def hide_from_address_queries(self, tx_id: str) -> None:
        """Keep a transaction out of fetch_by_address results.

        fetch_by_id still returns it, which models a transaction that fell
        outside the address query window.
        """
        self._hidden.add(tx_id)

    def fail_next(self, error: IndexerError) -> None:
        """Make the next query raise error."""
        self._failures.append(error)

    def reset(self) -> None:
        """Clear all transactions, failures and recorded queries."""
        self._transactions.clear()
        self._hidden.clear()
        self._failures.clear()
        self.address_queries.clear()
        self.id_queries.clear()

    @property
    def transactions(self) -> list[Transaction]:
        """Every stored transaction, in insertion order."""
        return list(self._transactions.values())

    async def fetch_by_address(
        self,
        address: str,
        limit: int,
        since_time: int | None = None,
    ) -> list[Transaction]:
        """Return transactions sent from or to address, newest first."""
        self.address_queries.append((address, limit, since_time))
        self._raise_if_failing("fetch_by_address")
        matching = [
            tx
            for tx in self._transactions.values()
            if tx.id not in self._hidden
            and address in (tx.author_address, tx.recipient_address)
            and (since_time is None or tx.block_time >= since_time)
        ]
        matching.sort(key=lambda tx: tx.block_time, reverse=True)
        return matching[:limit]

    async def fetch_by_id(self, tx_id: str) -> Transaction | None:
        """Return the transaction with this id, if stored."""
        self.id_queries.append(tx_id)
        self._raise_if_failing("fetch_by_id")
        return self._transactions.get(tx_id)

    def _raise_if_failing(self, operation: str) -> None:
        if self._failures:
            error = self._failures.popleft()
            error.operation = error.operation or operation
            raise error
