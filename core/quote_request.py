"""
Quote request normalization and validation.

``QuoteRequest`` values are immutable; every edit produces a new value.
``QuoteRequestModel.is_valid`` is the single gate checked before any
provider call is issued.

Usage:
    model = QuoteRequestModel()
    request = model.update(model.reset(), src_chain_id=1, dest_chain_id=10)
    if model.is_valid(request):
        aggregator.submit(request)
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from typing import Any

from config.loader import get_config
from core.amounts import to_base_units
from shared.constants import DEFAULT_SLIPPAGE, MAX_ALLOWED_SLIPPAGE, ZERO_ADDRESS
from shared.errors import InvalidRequestError
from shared.types import QuoteRequest

_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(QuoteRequest))

# Accept the wire (camelCase) names as well as the Python field names
_WIRE_ALIASES = {
    "walletAddress": "wallet_address",
    "srcChainId": "src_chain_id",
    "destChainId": "dest_chain_id",
    "srcTokenAddress": "src_token_address",
    "destTokenAddress": "dest_token_address",
    "srcTokenAmount": "src_token_amount",
}


class QuoteRequestModel:
    """Pure helper for building, merging and validating quote requests."""

    def __init__(self, require_cross_chain: bool | None = None) -> None:
        bridge_cfg = get_config().get_bridge_config()
        slippage_cfg = bridge_cfg.get("slippage", {})

        if require_cross_chain is None:
            require_cross_chain = bridge_cfg.get("require_cross_chain", True)
        self._require_cross_chain: bool = require_cross_chain
        self._default_slippage = float(slippage_cfg.get("default", DEFAULT_SLIPPAGE))
        self._max_slippage = float(slippage_cfg.get("max_allowed", MAX_ALLOWED_SLIPPAGE))

    @property
    def require_cross_chain(self) -> bool:
        return self._require_cross_chain

    def reset(self) -> QuoteRequest:
        """Default request: no wallet, native source token, default slippage."""
        return QuoteRequest(
            wallet_address=None,
            src_token_address=ZERO_ADDRESS,
            slippage=self._default_slippage,
        )

    def update(
        self,
        request: QuoteRequest,
        partial: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> QuoteRequest:
        """
        Merge ``partial`` and keyword fields into ``request``.

        Keys that are not supplied keep their previous value; unknown keys
        raise ``InvalidRequestError``.
        """
        changes: dict[str, Any] = {}
        for key, value in {**(partial or {}), **fields}.items():
            name = _WIRE_ALIASES.get(key, key)
            if name not in _FIELD_NAMES:
                raise InvalidRequestError(f"Unknown quote request field: {key}")
            changes[name] = value

        if "src_token_amount" in changes and changes["src_token_amount"] is not None:
            changes["src_token_amount"] = str(changes["src_token_amount"])
        if "slippage" in changes and changes["slippage"] is not None:
            changes["slippage"] = float(changes["slippage"])

        return dataclasses.replace(request, **changes)

    def set_src_amount(
        self, request: QuoteRequest, amount: str, decimals: int
    ) -> QuoteRequest:
        """Store a user-entered amount as base units; an empty input clears it."""
        if amount.strip() == "":
            return dataclasses.replace(request, src_token_amount="")
        try:
            base_units = to_base_units(amount, decimals)
        except ValueError as exc:
            raise InvalidRequestError(f"Invalid source amount {amount!r}: {exc}") from exc
        return dataclasses.replace(request, src_token_amount=str(base_units))

    def is_valid(self, request: QuoteRequest) -> bool:
        """True iff every routing field is set, the amount is non-zero and slippage is sane."""
        if not request.src_chain_id or not request.dest_chain_id:
            return False
        if not request.src_token_address or not request.dest_token_address:
            return False
        if not _is_positive_amount(request.src_token_amount):
            return False
        if self._require_cross_chain and request.src_chain_id == request.dest_chain_id:
            return False
        if request.slippage is None or not 0 <= request.slippage <= self._max_slippage:
            return False
        return True

    def validate(self, request: QuoteRequest) -> QuoteRequest:
        """Raise ``InvalidRequestError`` unless ``is_valid``; returns the request."""
        if not self.is_valid(request):
            raise InvalidRequestError(f"Incomplete quote request: {request.to_dict()}")
        return request


def _is_positive_amount(amount: str | None) -> bool:
    if not amount:
        return False
    try:
        return int(amount) > 0
    except ValueError:
        return False
