"""
Collaborator protocols consumed by the bridge quote engine.

Default adapters live in ``execution/``; tests substitute ``AsyncMock`` doubles.
"""

from __future__ import annotations

from typing import Any, Protocol

from shared.types import (
    BridgeFeatureFlags,
    GasEstimateParams,
    GasEstimateResult,
    Quote,
    QuoteRequest,
    TransactionParams,
)


class QuoteProvider(Protocol):
    async def fetch_quotes(self, request: QuoteRequest) -> list[Quote]:
        """Raises a ``QuoteFetchError`` subclass on classified failures."""
        ...


class FeatureFlagSource(Protocol):
    async def get_bridge_feature_flags(self) -> BridgeFeatureFlags: ...


class TokenListSource(Protocol):
    async def get_tokens(self, chain_id: int) -> dict[str, dict[str, Any]]: ...


class GasProvider(Protocol):
    async def estimate_gas(self, params: GasEstimateParams) -> GasEstimateResult: ...

    async def get_block_gas_limit(self) -> str: ...

    async def is_contract_address(self, address: str) -> bool: ...


class BalanceReader(Protocol):
    async def get_balance(self, address: str, token_address: str | None = None) -> int: ...


class TransactionSigner(Protocol):
    async def submit(self, params: TransactionParams) -> str:
        """Sign and broadcast; returns a submission handle (tx hash)."""
        ...
