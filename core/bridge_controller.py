"""
Bridge session controller.

Composes the request model, feature gate, quote aggregator and selector into
the state-and-actions surface a UI drives. Every user action edits the quote
request and, when the result is valid, hands it to the aggregator; an edit
that leaves the request incomplete stops polling the previous one.

Usage:
    api = BridgeApiClient()
    controller = BridgeController(api)
    await controller.set_bridge_feature_flags()
    await controller.select_src_network(1)
    await controller.select_dest_network(10)
    controller.set_to_token("0x0b2c639c533813f4aa9d7837caf62653d097ff85")
    controller.set_from_token_input_value("1.5", 18)
    await controller.wait_for_quotes(timeout=15)
    best = controller.recommended_quote()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, cast

from bridge_logging.logger_manager import setup_module_logger
from core.feature_gate import BridgeFeatureGate
from core.quote_aggregator import QuoteAggregator
from core.quote_request import QuoteRequestModel
from core.quote_selector import QuoteSelector
from shared.constants import ZERO_ADDRESS
from shared.interfaces import FeatureFlagSource, QuoteProvider, TokenListSource
from shared.types import BridgeFeatureFlags, Network, Quote, QuoteRequest, QuoteSetState


class BridgeController:
    """
    One bridge flow. ``flag_source`` and ``token_source`` default to
    ``quote_provider``, which fits ``BridgeApiClient`` serving all three.
    """

    def __init__(
        self,
        quote_provider: QuoteProvider,
        flag_source: FeatureFlagSource | None = None,
        token_source: TokenListSource | None = None,
        *,
        model: QuoteRequestModel | None = None,
        gate: BridgeFeatureGate | None = None,
        selector: QuoteSelector | None = None,
    ) -> None:
        self._flag_source = flag_source or cast(FeatureFlagSource, quote_provider)
        self._token_source = token_source or cast(TokenListSource, quote_provider)

        self._model = model if model is not None else QuoteRequestModel()
        self._gate = gate if gate is not None else BridgeFeatureGate()
        self._selector = selector if selector is not None else QuoteSelector()
        self._aggregator = QuoteAggregator(quote_provider, model=self._model)

        self._flags = BridgeFeatureFlags()
        self._src_tokens: dict[str, dict[str, Any]] = {}
        self._dest_tokens: dict[str, dict[str, Any]] = {}
        self._request: QuoteRequest = self._model.reset()

        self._logger = setup_module_logger(
            "bridge_controller", "bridge_controller.log", module_folder="Bridge_Controller_Logs"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def feature_flags(self) -> BridgeFeatureFlags:
        return self._flags

    @property
    def quote_request(self) -> QuoteRequest:
        return self._request

    @property
    def quote_state(self) -> QuoteSetState:
        return self._aggregator.state

    @property
    def aggregator(self) -> QuoteAggregator:
        return self._aggregator

    # ------------------------------------------------------------------
    # Feature flags and networks
    # ------------------------------------------------------------------

    async def set_bridge_feature_flags(self) -> BridgeFeatureFlags:
        self._flags = await self._flag_source.get_bridge_feature_flags()
        return self._flags

    def source_networks(self, networks: Iterable[Network]) -> list[Network]:
        return self._gate.source_networks(networks, self._flags)

    def destination_networks(
        self, networks: Iterable[Network], current_network: Network
    ) -> list[Network]:
        return self._gate.destination_networks(networks, self._flags, current_network)

    def is_bridge_tx(self, from_network: Network, to_network: Network | None) -> bool:
        return self._gate.is_bridge_tx(
            from_network, to_network, self._flags.extension_support_enabled
        )

    async def select_src_network(self, chain_id: int) -> None:
        """Set the source chain, re-submit, then load its token list."""
        self._update(src_chain_id=chain_id)
        self._src_tokens = await self._token_source.get_tokens(chain_id)
        self._logger.info("Source network %d selected (%d tokens)", chain_id, len(self._src_tokens))

    async def select_dest_network(self, chain_id: int) -> None:
        """Set the destination chain, re-submit, then load its token list."""
        self._update(dest_chain_id=chain_id)
        self._dest_tokens = await self._token_source.get_tokens(chain_id)
        self._logger.info(
            "Destination network %d selected (%d tokens)", chain_id, len(self._dest_tokens)
        )

    # ------------------------------------------------------------------
    # Request edits
    # ------------------------------------------------------------------

    def set_from_token(self, address: str | None) -> None:
        """``None`` selects the source chain's native asset."""
        self._update(src_token_address=address or ZERO_ADDRESS)

    def set_to_token(self, address: str | None) -> None:
        self._update(dest_token_address=address or "")

    def set_from_token_input_value(self, amount: str, decimals: int) -> None:
        self._set_request(self._model.set_src_amount(self._request, amount, decimals))

    def update_quote_params(self, partial: Mapping[str, Any] | None = None, **fields: Any) -> None:
        self._update(partial, **fields)

    def switch_to_and_from_tokens(self) -> None:
        """
        Swap source and destination chains and tokens.

        The entered amount is cleared since it is denominated in the old
        source token's base units.
        """
        request = self._request
        self._src_tokens, self._dest_tokens = self._dest_tokens, self._src_tokens
        self._update(
            src_chain_id=request.dest_chain_id,
            dest_chain_id=request.src_chain_id,
            src_token_address=request.dest_token_address or ZERO_ADDRESS,
            dest_token_address=request.src_token_address,
            src_token_amount="",
        )

    def reset_state(self) -> None:
        """Stop the flow and restore defaults; feature flags are kept."""
        self._request = self._aggregator.reset()
        self._src_tokens = {}
        self._dest_tokens = {}
        self._logger.info("Bridge state reset")

    # ------------------------------------------------------------------
    # Quote results
    # ------------------------------------------------------------------

    def set_gas_pricing(self, gas_price_wei: int, native_to_dest_rate: Decimal | str | int) -> None:
        """Price gas into the ranking; without it quotes rank by destination amount."""
        self._selector = QuoteSelector(gas_price_wei, native_to_dest_rate)

    def recommended_quote(self) -> Quote | None:
        return self._selector.recommended(self._aggregator.state.quotes)

    def to_amount(self) -> str | None:
        return self._selector.to_amount_display(self.recommended_quote())

    async def wait_for_quotes(self, timeout: float | None = None) -> QuoteSetState:
        return await self._aggregator.wait_until_settled(timeout)

    def get_quote_request(self) -> dict[str, Any]:
        return {**self._request.to_dict(), "isValid": self._model.is_valid(self._request)}

    def get_state(self) -> dict[str, Any]:
        quote_state = self._aggregator.state
        return {
            "bridgeFeatureFlags": self._flags.to_dict(),
            "srcTokens": dict(self._src_tokens),
            "destTokens": dict(self._dest_tokens),
            "quotes": [quote.to_dict() for quote in quote_state.quotes],
            "quoteRequest": self._request.to_dict(),
            "quotesLastFetched": quote_state.last_fetched_ms,
            "quotesLoadingStatus": quote_state.status.value if quote_state.status else None,
        }

    async def close(self) -> None:
        await self._aggregator.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _update(self, partial: Mapping[str, Any] | None = None, **fields: Any) -> None:
        self._set_request(self._model.update(self._request, partial, **fields))

    def _set_request(self, request: QuoteRequest) -> None:
        self._request = request
        if self._model.is_valid(request):
            self._aggregator.submit(request)
        elif self._aggregator.is_active:
            # Incomplete edit: stop refreshing quotes for the previous request
            self._aggregator.teardown()
            self._logger.debug("Quote request incomplete, polling stopped")
