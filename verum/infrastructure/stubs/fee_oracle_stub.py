"""FeeOracleStub for testing."""

from __future__ import annotations

from decimal import Decimal

from verum.application.ports.fee_oracle import FeeOraclePort
from verum.domain.payloads import PayloadKind


class FeeOracleStub(FeeOraclePort):
    """Returns a fixed amount per kind and records every request.

    Example:
        >>> stub = FeeOracleStub(default=Decimal("1"))
        >>> stub.set_amount(PayloadKind.LIKE, Decimal("0.1"))
    """

    def __init__(self, default: Decimal = Decimal("1")) -> None:
        """Initialize with one amount, in KAS, for every kind."""
        self._default = default
        self._amounts: dict[PayloadKind, Decimal] = {}
        self.requests: list[PayloadKind] = []

    def set_amount(self, kind: PayloadKind, amount: Decimal) -> None:
        """Override the amount for one kind."""
        self._amounts[kind] = amount

    def reset(self) -> None:
        """Clear overrides and recorded requests."""
        self._amounts.clear()
        self.requests.clear()

    async def amount_for(self, kind: PayloadKind) -> Decimal:
        """Return the configured amount for kind."""
        self.requests.append(kind)
        return self._amounts.get(kind, self._default)
