"""Transaction sender port (wallet boundary).

The sender signs and broadcasts a transaction carrying a payload and a
payment. Wallet connection and signing are outside the engine; only this
contract is consumed.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransactionSenderPort(Protocol):
    """Protocol for submitting payload transactions.

    Implementations raise SenderError for every submission failure and
    may set its retryable flag when they know the failure class.
    """

    async def get_address(self) -> str | None:
        """Return the address transactions are sent from.

        Returns:
            The connected address, or None if no wallet is connected.
        """
        ...

    async def submit(
        self,
        payload: bytes,
        recipient_address: str,
        amount: int,
        priority_fee: int,
    ) -> str:
        """Submit one transaction.

        Args:
            payload: Encoded payload for the opaque-data attachment.
            recipient_address: Address receiving the payment.
            amount: Payment in sompi.
            priority_fee: Priority fee in sompi.

        Returns:
            The transaction id.

        Raises:
            SenderError: If the submission failed.
        """
        ...
