"""
Exception hierarchy for the bridge quote engine.

Quote fetch errors carry a ``QuoteErrorCode`` so the aggregator can surface
them as state instead of raising to its caller.
"""

from __future__ import annotations

from shared.types import QuoteErrorCode


class BridgeEngineError(Exception):
    """Base error for the bridge quote engine."""


class InvalidRequestError(BridgeEngineError):
    """Raised when a quote request is incomplete; callers re-check with ``is_valid``."""


class QuoteFetchError(BridgeEngineError):
    """Base error for classified quote provider failures."""

    code: QuoteErrorCode = QuoteErrorCode.NETWORK_ERROR


class NoRoutesAvailableError(QuoteFetchError):
    """Raised when the provider has no route for the requested pair."""

    code = QuoteErrorCode.NO_ROUTES_AVAILABLE


class QuotesExpiredError(QuoteFetchError):
    """Raised when the provider reports the quotes as expired."""

    code = QuoteErrorCode.QUOTES_EXPIRED


class QuoteNetworkError(QuoteFetchError):
    """Raised on transport failures, timeouts and unexpected provider responses."""

    code = QuoteErrorCode.NETWORK_ERROR


class BridgeApiError(BridgeEngineError):
    """Raised when a non-quote bridge API call (flags, tokens) fails."""


class GasSimulationFailedError(BridgeEngineError):
    """Raised when a simulation fails without a fallback gas figure."""


class UnsupportedAssetStandardError(BridgeEngineError):
    """Raised when an NFT draft carries a standard other than ERC721/ERC1155."""


class GasProviderError(BridgeEngineError):
    """Raised when the gas provider cannot reach the node (timeouts, transport errors)."""


class BalanceReadError(BridgeEngineError):
    """Raised when a native or token balance lookup fails."""
