"""Fee oracle port.

Sizes the payment attached to each action. Payments are an economic
convention of the client, not part of the chain protocol.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from verum.domain.payloads import PayloadKind


@runtime_checkable
class FeeOraclePort(Protocol):
    """Protocol for payment amounts per action kind."""

    async def amount_for(self, kind: PayloadKind) -> Decimal:
        """Return the payment for one action, in KAS.

        Args:
            kind: The action being paid for.

        Returns:
            Payment amount in KAS.
        """
        ...
