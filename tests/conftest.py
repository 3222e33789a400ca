"""
Shared pytest configuration and fixtures for the bridge quote engine tests.

Provides standard configs, sample addresses and quote builders used across
the unit test modules.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from shared.types import BridgeAsset, Quote, QuoteRequest

# ---------------------------------------------------------------------------
# Sample addresses and chains
# ---------------------------------------------------------------------------

SAMPLE_WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
SAMPLE_RECIPIENT = "0x2f318C334780961FB129D2a6c30D0763d9a5C970"
SAMPLE_TOKEN = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"  # USDC mainnet
SAMPLE_DEST_TOKEN = "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85"  # USDC optimism
SAMPLE_NFT = "0x06012c8cf97BEaD5deAe237070F9587f8E7A266d"
ZERO_ADDRESS = "0x" + "00" * 20

CHAIN_MAINNET = 1
CHAIN_OPTIMISM = 10
CHAIN_LINEA = 59144

# ---------------------------------------------------------------------------
# Standard mock configs
# ---------------------------------------------------------------------------

STANDARD_BRIDGE_CONFIG = {
    "api": {
        "base_url": "https://bridge.api.cx.metamask.io",
        "client_id": "extension",
        "timeout_seconds": 10,
    },
    "require_cross_chain": True,
    "slippage": {"default": 0.5, "max_allowed": 15},
}

STANDARD_TIMING_CONFIG = {
    "quotes": {"debounce_ms": 1000, "refresh_interval_seconds": 30},
    "gas": {"estimate_timeout_seconds": 15},
}

# Millisecond-scale timers so aggregator tests run fast
FAST_TIMING_CONFIG = {
    "quotes": {"debounce_ms": 20, "refresh_interval_seconds": 0.2},
    "gas": {"estimate_timeout_seconds": 1},
}

STANDARD_GAS_CONFIG = {
    "default_buffer_multiplier": 1.5,
    "simple_send_non_standard_multiplier": 1.0,
    "chain_buffer_overrides": {"10": 1.0, "11155420": 1.0},
    "limits": {"simple": "0x5208", "base_token_estimate": "0x186a0"},
    "block_gas_limit_cap_ratio": "0.9",
    "simulation_fallback_ratio": "0.95",
}


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_request(**overrides) -> QuoteRequest:
    """A complete, valid quote request (1 ETH mainnet -> Optimism USDC)."""
    fields = {
        "wallet_address": SAMPLE_WALLET,
        "src_chain_id": CHAIN_MAINNET,
        "dest_chain_id": CHAIN_OPTIMISM,
        "src_token_address": ZERO_ADDRESS,
        "dest_token_address": SAMPLE_DEST_TOKEN,
        "src_token_amount": str(10**18),
        "slippage": 0.5,
    }
    fields.update(overrides)
    return QuoteRequest(**fields)


def make_quote(
    dest_amount: int = 2500 * 10**6,
    estimated_gas: int = 200_000,
    aggregator_id: str = "across",
    fetched_at_ms: int = 1_700_000_000_000,
    dest_decimals: int = 6,
) -> Quote:
    return Quote(
        src_asset=BridgeAsset(address=ZERO_ADDRESS, decimals=18, chain_id=CHAIN_MAINNET, symbol="ETH"),
        dest_asset=BridgeAsset(
            address=SAMPLE_DEST_TOKEN, decimals=dest_decimals, chain_id=CHAIN_OPTIMISM, symbol="USDC"
        ),
        src_token_amount=10**18,
        dest_token_amount=dest_amount,
        estimated_gas=estimated_gas,
        aggregator_id=aggregator_id,
        fetched_at_ms=fetched_at_ms,
    )


# ---------------------------------------------------------------------------
# Config loader fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_config_loader():
    """
    Provide a mock ConfigLoader that returns standard configs.

    Usage in tests:
        def test_something(mock_config_loader):
            mock_config_loader.get_timing_config.return_value = {...}
    """
    loader = MagicMock()
    loader.get_bridge_config.return_value = dict(STANDARD_BRIDGE_CONFIG)
    loader.get_timing_config.return_value = dict(STANDARD_TIMING_CONFIG)
    loader.get_gas_config.return_value = dict(STANDARD_GAS_CONFIG)
    loader.get_app_config.return_value = {"logging": {"log_dir": "logs"}}
    loader.get_abi.return_value = []
    return loader


@pytest.fixture
def request_factory():
    """Factory for complete quote requests; keyword overrides replace fields."""
    return make_request


@pytest.fixture
def quote_factory():
    """Factory for quotes into Optimism USDC."""
    return make_quote
