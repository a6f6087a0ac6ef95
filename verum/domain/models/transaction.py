"""Transaction domain model.

A Transaction is what the indexer reports about one on-chain transaction.
It is read-only to the protocol engine and immutable once observed.

Usage:
    tx = Transaction(
        id="ab12...",
        author_address="kaspa:qq...",
        recipient_address="kaspa:qp...",
        accepted=True,
        block_time=1722470500,
        raw_payload=b'{"verum":"0.3","type":"post",...}',
    )
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, eq=True)
class Transaction:
    """One transaction as reported by the indexer.

    Attributes:
        id: Opaque transaction identifier.
        author_address: Address that signed the transaction.
        recipient_address: Address that received the payment, if any.
        accepted: Whether the network accepted the transaction.
        block_time: Block timestamp in Unix seconds.
        raw_payload: Opaque-data attachment, if present.
    """

    id: str
    author_address: str
    recipient_address: str | None
    accepted: bool
    block_time: int
    raw_payload: bytes | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Build a transaction from a JSON-style mapping.

        The payload may be given as a JSON object, as a string holding raw
        JSON or hex, or omitted.

        Args:
            data: Mapping with id, author_address, block_time and
                optionally recipient_address, accepted and payload.

        Returns:
            The corresponding Transaction.

        Raises:
            KeyError: If a required key is missing.
        """
        payload = data.get("payload")
        raw: bytes | None
        if payload is None:
            raw = None
        elif isinstance(payload, dict):
            raw = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode(
                "utf-8"
            )
        else:
            raw = str(payload).encode("utf-8")
        return cls(
            id=str(data["id"]),
            author_address=str(data["author_address"]),
            recipient_address=data.get("recipient_address"),
            accepted=bool(data.get("accepted", True)),
            block_time=int(data["block_time"]),
            raw_payload=raw,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible mapping.

        The payload is written as text; it is UTF-8 JSON for every payload
        this engine produces.
        """
        return {
            "id": self.id,
            "author_address": self.author_address,
            "recipient_address": self.recipient_address,
            "accepted": self.accepted,
            "block_time": self.block_time,
            "payload": (
                self.raw_payload.decode("utf-8", errors="replace")
                if self.raw_payload is not None
                else None
            ),
        }
