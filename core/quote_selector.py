"""
Recommended-quote selection.

Ranks quotes by the net value delivered on the destination chain:

    net = dest_amount_human - estimated_gas * gas_price_wei / 1e18 * native_to_dest_rate

``native_to_dest_rate`` is the number of destination tokens one unit of the
source chain's native asset is worth. Without a rate (or gas price) the gas
term is zero and quotes rank by destination amount alone. Ties fall back to
the lower gas estimate, then the earliest ``fetched_at_ms``, then arrival order.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

from core.amounts import format_amount, from_base_units
from shared.constants import TO_AMOUNT_DISPLAY_PLACES
from shared.types import Quote

_NATIVE_DECIMALS = 18


class QuoteSelector:
    def __init__(
        self,
        gas_price_wei: int = 0,
        native_to_dest_rate: Decimal | str | int = 0,
    ) -> None:
        self._gas_price_wei = gas_price_wei
        self._native_to_dest_rate = Decimal(str(native_to_dest_rate))

    def gas_cost_in_dest_units(self, quote: Quote) -> Decimal:
        gas_cost_native = from_base_units(quote.estimated_gas * self._gas_price_wei, _NATIVE_DECIMALS)
        return gas_cost_native * self._native_to_dest_rate

    def net_value(self, quote: Quote) -> Decimal:
        dest_amount = from_base_units(quote.dest_token_amount, quote.dest_asset.decimals)
        return dest_amount - self.gas_cost_in_dest_units(quote)

    def ranked(self, quotes: Sequence[Quote]) -> list[Quote]:
        """Best-first copy of ``quotes``; the input sequence is left untouched."""
        indexed = list(enumerate(quotes))
        indexed.sort(
            key=lambda item: (
                -self.net_value(item[1]),
                item[1].estimated_gas,
                item[1].fetched_at_ms,
                item[0],
            )
        )
        return [quote for _, quote in indexed]

    def recommended(self, quotes: Sequence[Quote]) -> Quote | None:
        if not quotes:
            return None
        return self.ranked(quotes)[0]

    @staticmethod
    def to_amount_display(quote: Quote | None) -> str | None:
        """Destination amount in human units, fixed to three decimals."""
        if quote is None:
            return None
        return format_amount(
            quote.dest_token_amount, quote.dest_asset.decimals, TO_AMOUNT_DISPLAY_PLACES
        )
