"""
Shared data types for the bridge quote engine.

Centralized dataclasses and enums used across all modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from shared.constants import DEFAULT_SLIPPAGE, ZERO_ADDRESS

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RequestStatus(Enum):
    LOADING = "loading"
    FETCHED = "fetched"
    ERROR = "error"


class QuoteErrorCode(Enum):
    NETWORK_ERROR = "network_error"  # transient, retried on the next poll
    NO_ROUTES_AVAILABLE = "no_routes_available"
    QUOTES_EXPIRED = "quotes_expired"


class TokenStandard(Enum):
    ERC20 = "ERC20"
    ERC721 = "ERC721"
    ERC1155 = "ERC1155"


class TransactionEnvelopeType(Enum):
    LEGACY = "0x0"
    FEE_MARKET = "0x2"  # EIP-1559


# ---------------------------------------------------------------------------
# Quote Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QuoteRequest:
    wallet_address: str | None = None
    src_chain_id: int | None = None
    dest_chain_id: int | None = None
    src_token_address: str | None = ZERO_ADDRESS
    dest_token_address: str | None = None
    src_token_amount: str | None = None  # base units, decimal string
    slippage: float = DEFAULT_SLIPPAGE  # percent

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used by the bridge API and the session state."""
        return {
            "walletAddress": self.wallet_address,
            "srcChainId": self.src_chain_id,
            "destChainId": self.dest_chain_id,
            "srcTokenAddress": self.src_token_address,
            "destTokenAddress": self.dest_token_address,
            "srcTokenAmount": self.src_token_amount,
            "slippage": self.slippage,
        }


@dataclass(frozen=True)
class BridgeAsset:
    address: str
    decimals: int
    chain_id: int
    symbol: str | None = None


@dataclass(frozen=True)
class Quote:
    src_asset: BridgeAsset
    dest_asset: BridgeAsset
    src_token_amount: int  # base units
    dest_token_amount: int  # base units
    estimated_gas: int
    aggregator_id: str
    fetched_at_ms: int
    request_id: str | None = None
    trade: dict[str, Any] | None = None  # Raw trade tx returned by the provider
    estimated_processing_time_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "requestId": self.request_id,
            "srcAsset": _asset_dict(self.src_asset),
            "destAsset": _asset_dict(self.dest_asset),
            "srcTokenAmount": str(self.src_token_amount),
            "destTokenAmount": str(self.dest_token_amount),
            "estimatedGas": self.estimated_gas,
            "aggregatorId": self.aggregator_id,
            "fetchedAtMs": self.fetched_at_ms,
            "estimatedProcessingTimeInSeconds": self.estimated_processing_time_seconds,
        }


def _asset_dict(asset: BridgeAsset) -> dict[str, Any]:
    return {
        "address": asset.address,
        "decimals": asset.decimals,
        "chainId": asset.chain_id,
        "symbol": asset.symbol,
    }


@dataclass
class QuoteSetState:
    status: RequestStatus | None = None  # None until the first request is dispatched
    quotes: list[Quote] = field(default_factory=list)  # arrival order
    last_fetched_ms: int | None = None
    error_code: QuoteErrorCode | None = None


# ---------------------------------------------------------------------------
# Network / Feature Flag Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Network:
    chain_id: int
    name: str
    rpc_url: str | None = None


@dataclass(frozen=True)
class BridgeFeatureFlags:
    extension_support_enabled: bool = False
    source_allowlist: tuple[int, ...] = ()
    dest_allowlist: tuple[int, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "extensionSupport": self.extension_support_enabled,
            "srcNetworkAllowlist": list(self.source_allowlist),
            "destNetworkAllowlist": list(self.dest_allowlist),
        }


# ---------------------------------------------------------------------------
# Draft Transaction Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NativeAsset:
    pass


@dataclass(frozen=True)
class TokenAsset:
    address: str
    decimals: int
    symbol: str | None = None


@dataclass(frozen=True)
class NftAsset:
    address: str
    standard: TokenStandard
    token_id: int


DraftAsset = Union[NativeAsset, TokenAsset, NftAsset]


@dataclass
class GasFields:
    gas_limit: str | None = None
    gas_price: str | None = None
    max_fee_per_gas: str | None = None
    max_priority_fee_per_gas: str | None = None


@dataclass
class DraftTransaction:
    asset: DraftAsset
    recipient_address: str | None = None
    amount_value: str = "0x0"  # base units, hex
    from_address: str | None = None  # overrides the signer's default account
    gas: GasFields = field(default_factory=GasFields)
    user_input_hex_data: str | None = None  # native sends only
    eip1559_support: bool = False


@dataclass
class TransactionParams:
    from_address: str
    to: str | None
    value: str
    gas: str | None
    type: TransactionEnvelopeType
    data: str | None = None
    gas_price: str | None = None
    max_fee_per_gas: str | None = None
    max_priority_fee_per_gas: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """JSON-RPC shaped params; unpopulated optional fields are omitted."""
        params: dict[str, Any] = {
            "from": self.from_address,
            "to": self.to,
            "value": self.value,
            "gas": self.gas,
            "type": self.type.value,
        }
        if self.data is not None:
            params["data"] = self.data
        if self.type is TransactionEnvelopeType.FEE_MARKET:
            params["maxFeePerGas"] = self.max_fee_per_gas
            params["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas
        else:
            params["gasPrice"] = self.gas_price
        return params


# ---------------------------------------------------------------------------
# Gas Estimation Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GasEstimateParams:
    from_address: str | None
    to: str | None
    value: str | None = None
    data: str | None = None
    gas_price: str | None = None


@dataclass(frozen=True)
class GasEstimate:
    gas: str  # hex


@dataclass(frozen=True)
class SimulationFailure:
    reason: str
    gas: str | None = None  # raw figure reported alongside the failed simulation
    block_gas_limit: str | None = None  # block limit the figure was derived from


GasEstimateResult = Union[GasEstimate, SimulationFailure]
