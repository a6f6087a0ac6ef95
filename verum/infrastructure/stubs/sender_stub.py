"""SenderStub for testing and offline tooling.

In-memory implementation of TransactionSenderPort. Each accepted
submission gets a deterministic 64-hex transaction id and can be
published straight into an IndexerStub, so writer and reader paths can
be exercised together without a chain.
"""

from __future__ import annotations

import hashlib
from collections import deque
from dataclasses import dataclass

from verum.application.ports.sender import TransactionSenderPort
from verum.domain.constants import VERUM_PROTOCOL_CREATION_DATE
from verum.domain.errors.sender import SenderError
from verum.domain.models.transaction import Transaction
from verum.infrastructure.stubs.indexer_stub import IndexerStub


@dataclass(frozen=True, eq=True)
class SubmittedTransaction:
    """A submission the stub accepted.

    Attributes:
        tx_id: Id returned to the caller.
        payload: Encoded payload bytes.
        recipient_address: Payment recipient.
        amount: Payment in sompi.
        priority_fee: Priority fee in sompi.
    """

    tx_id: str
    payload: bytes
    recipient_address: str
    amount: int
    priority_fee: int


class SenderStub(TransactionSenderPort):
    """In-memory stub implementation of TransactionSenderPort.

    Failures can be queued for the next attempts, or scheduled to start
    once a given number of submissions has succeeded.

    Example:
        >>> indexer = IndexerStub()
        >>> sender = SenderStub(address, indexer=indexer)
        >>> sender.fail_after(2, SenderError("Network error"), times=3)
        >>> tx_id = await sender.submit(b"{...}", address, 100_000_000, 1000)
    """

    def __init__(
        self,
        address: str | None,
        indexer: IndexerStub | None = None,
        *,
        accepted: bool = True,
        first_block_time: int = VERUM_PROTOCOL_CREATION_DATE + 86_400,
    ) -> None:
        """Initialize the sender.

        Args:
            address: Address submissions are sent from. None means no
                wallet is connected.
            indexer: Optional indexer that receives accepted submissions.
            accepted: Acceptance flag of transactions put into the indexer.
            first_block_time: Block time of the first submission. Each
                later submission is one second newer.
        """
        self._address = address
        self._indexer = indexer
        self._accepted = accepted
        self._next_block_time = first_block_time
        self._immediate: deque[SenderError] = deque()
        self._scheduled: dict[int, deque[SenderError]] = {}
        self.submissions: list[SubmittedTransaction] = []
        self.attempts = 0

    def set_address(self, address: str | None) -> None:
        """Connect a different address, or disconnect with None."""
        self._address = address

    def fail_next(self, error: SenderError, times: int = 1) -> None:
        """Make the next attempts raise error.

        Args:
            error: Error to raise.
            times: Number of consecutive attempts that fail.
        """
        self._immediate.extend([error] * times)

    def fail_after(self, successes: int, error: SenderError, times: int = 1) -> None:
        """Fail attempts made once exactly `successes` submissions succeeded.

        Args:
            successes: Successful submissions before failures start.
            error: Error to raise.
            times: Number of consecutive attempts that fail.
        """
        self._scheduled.setdefault(successes, deque()).extend([error] * times)

    def reset(self) -> None:
        """Forget submissions and pending failures."""
        self._immediate.clear()
        self._scheduled.clear()
        self.submissions.clear()
        self.attempts = 0

    @property
    def tx_ids(self) -> list[str]:
        """Ids of accepted submissions, in order."""
        return [submission.tx_id for submission in self.submissions]

    async def get_address(self) -> str | None:
        """Return the connected address."""
        return self._address

    async def submit(
        self,
        payload: bytes,
        recipient_address: str,
        amount: int,
        priority_fee: int,
    ) -> str:
        """Accept a submission, or raise the next scheduled failure."""
        self.attempts += 1
        if self._address is None:
            raise SenderError("Wallet not authenticated", retryable=False)
        if self._immediate:
            raise self._immediate.popleft()
        scheduled = self._scheduled.get(len(self.submissions))
        if scheduled:
            raise scheduled.popleft()

        digest = hashlib.sha256()
        digest.update(self._address.encode())
        digest.update(len(self.submissions).to_bytes(8, "big"))
        digest.update(payload)
        tx_id = digest.hexdigest()

        self.submissions.append(
            SubmittedTransaction(
                tx_id=tx_id,
                payload=payload,
                recipient_address=recipient_address,
                amount=amount,
                priority_fee=priority_fee,
            )
        )
        if self._indexer is not None:
            self._indexer.add_transaction(
                Transaction(
                    id=tx_id,
                    author_address=self._address,
                    recipient_address=recipient_address,
                    accepted=self._accepted,
                    block_time=self._next_block_time,
                    raw_payload=payload,
                )
            )
        self._next_block_time += 1
        return tx_id
