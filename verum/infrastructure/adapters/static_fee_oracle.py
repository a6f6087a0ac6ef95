"""Static fee oracle - payments from a fixed KAS price.

Each action pays a share of a base USD value, converted at the configured
KAS price, with a minimum that keeps wallets willing to send it:

    amount = max(BASE_FEE_USD * share / kas_price_usd, MIN_FEE_KAS)

| kind      | share of base |
|-----------|---------------|
| subscribe | 100%          |
| comment   | 30%           |
| like      | 5%            |
| post      | 2000%         |
| note      | 2000%         |
| story     | 2000%         |

Kinds without a share (start, unsubscribe) pay the minimum.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from verum.application.ports.fee_oracle import FeeOraclePort
from verum.domain.payloads import PayloadKind

DEFAULT_KAS_PRICE_USD = Decimal("0.05")
BASE_FEE_USD = Decimal("0.05")
MIN_FEE_KAS = Decimal("0.1")

FEE_SHARES: dict[PayloadKind, Decimal] = {
    PayloadKind.SUBSCRIBE: Decimal("1.0"),
    PayloadKind.COMMENT: Decimal("0.3"),
    PayloadKind.LIKE: Decimal("0.05"),
    PayloadKind.POST: Decimal("20.0"),
    PayloadKind.NOTE: Decimal("20.0"),
    PayloadKind.STORY: Decimal("20.0"),
}


class StaticFeeOracle(FeeOraclePort):
    """Fee oracle with a fixed KAS/USD price.

    Example:
        >>> oracle = StaticFeeOracle()
        >>> await oracle.amount_for(PayloadKind.SUBSCRIBE)
        Decimal('1.00000000')
    """

    def __init__(
        self,
        kas_price_usd: Decimal = DEFAULT_KAS_PRICE_USD,
        min_fee_kas: Decimal = MIN_FEE_KAS,
    ) -> None:
        """Initialize the oracle.

        Args:
            kas_price_usd: Price of one KAS in USD.
            min_fee_kas: Smallest payment ever returned.

        Raises:
            ValueError: If the price is not positive.
        """
        if kas_price_usd <= 0:
            raise ValueError(f"kas_price_usd must be positive, got {kas_price_usd}")
        self._kas_price = kas_price_usd
        self._min_fee = min_fee_kas

    async def amount_for(self, kind: PayloadKind) -> Decimal:
        """Return the payment for kind, in KAS, to 8 decimal places."""
        share = FEE_SHARES.get(kind)
        if share is None:
            amount = self._min_fee
        else:
            amount = max(BASE_FEE_USD * share / self._kas_price, self._min_fee)
        return amount.quantize(Decimal("0.00000001"), rounding=ROUND_HALF_UP)
