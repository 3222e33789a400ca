"""
Unit tests for core/quote_selector.py.

Tests verify net-value ranking, gas-cost pricing, deterministic tie-breaks,
input immutability and destination amount display.
"""

from __future__ import annotations

from decimal import Decimal

from core.quote_selector import QuoteSelector

# 20 gwei
GAS_PRICE_WEI = 20 * 10**9
# 1 ETH = 2500 USDC
ETH_TO_USDC = Decimal("2500")


# ---------------------------------------------------------------------------
# A. Ranking tests
# ---------------------------------------------------------------------------


class TestRanking:
    def test_empty_returns_none(self):
        assert QuoteSelector().recommended([]) is None

    def test_highest_dest_amount_without_gas_pricing(self, quote_factory):
        low = quote_factory(dest_amount=2490 * 10**6, aggregator_id="hop")
        high = quote_factory(dest_amount=2495 * 10**6, aggregator_id="across")
        assert QuoteSelector().recommended([low, high]) is high

    def test_gas_cost_can_flip_ranking(self, quote_factory):
        # 1,000,000 gas at 20 gwei = 0.02 ETH = 50 USDC
        cheap_gas = quote_factory(dest_amount=2480 * 10**6, estimated_gas=100_000, aggregator_id="hop")
        heavy_gas = quote_factory(
            dest_amount=2500 * 10**6, estimated_gas=1_000_000, aggregator_id="celer"
        )
        selector = QuoteSelector(GAS_PRICE_WEI, ETH_TO_USDC)
        assert selector.recommended([heavy_gas, cheap_gas]) is cheap_gas

    def test_net_value(self, quote_factory):
        quote = quote_factory(dest_amount=2500 * 10**6, estimated_gas=100_000)
        selector = QuoteSelector(GAS_PRICE_WEI, ETH_TO_USDC)
        # 100,000 * 20 gwei = 0.002 ETH = 5 USDC
        assert selector.gas_cost_in_dest_units(quote) == Decimal("5")
        assert selector.net_value(quote) == Decimal("2495")

    def test_ranked_does_not_mutate_input(self, quote_factory):
        quotes = [quote_factory(dest_amount=1), quote_factory(dest_amount=2)]
        snapshot = list(quotes)
        QuoteSelector().ranked(quotes)
        assert quotes == snapshot

    def test_ranked_best_first(self, quote_factory):
        a = quote_factory(dest_amount=1, aggregator_id="a")
        b = quote_factory(dest_amount=3, aggregator_id="b")
        c = quote_factory(dest_amount=2, aggregator_id="c")
        assert [q.aggregator_id for q in QuoteSelector().ranked([a, b, c])] == ["b", "c", "a"]


# ---------------------------------------------------------------------------
# B. Tie-break tests
# ---------------------------------------------------------------------------


class TestTieBreaks:
    def test_lower_gas_wins_tie(self, quote_factory):
        heavy = quote_factory(estimated_gas=300_000, aggregator_id="heavy")
        light = quote_factory(estimated_gas=150_000, aggregator_id="light")
        assert QuoteSelector().recommended([heavy, light]) is light

    def test_earliest_fetch_wins_tie(self, quote_factory):
        late = quote_factory(fetched_at_ms=2_000, aggregator_id="late")
        early = quote_factory(fetched_at_ms=1_000, aggregator_id="early")
        assert QuoteSelector().recommended([late, early]) is early

    def test_arrival_order_is_final_tie_break(self, quote_factory):
        first = quote_factory(aggregator_id="first")
        second = quote_factory(aggregator_id="second")
        assert QuoteSelector().recommended([first, second]) is first
        assert QuoteSelector().recommended([second, first]) is second

    def test_deterministic_across_calls(self, quote_factory):
        quotes = [quote_factory(aggregator_id=str(i)) for i in range(5)]
        selector = QuoteSelector(GAS_PRICE_WEI, ETH_TO_USDC)
        assert selector.ranked(quotes) == selector.ranked(quotes)


# ---------------------------------------------------------------------------
# C. Display tests
# ---------------------------------------------------------------------------


class TestToAmountDisplay:
    def test_three_decimal_places(self, quote_factory):
        quote = quote_factory(dest_amount=2_499_876_543)
        assert QuoteSelector.to_amount_display(quote) == "2499.877"

    def test_none_quote(self):
        assert QuoteSelector.to_amount_display(None) is None
