"""
Unit tests for execution/bridge_api_client.py.

All tests mock HTTP responses via aioresponses. Tests verify feature-flag
mapping, token list parsing, quote request parameters, quote parsing and
the classification of HTTP and transport failures.
"""

from __future__ import annotations

import asyncio
import re
from unittest.mock import MagicMock, patch

import aiohttp
import pytest
from aioresponses import aioresponses

from shared.errors import BridgeApiError, NoRoutesAvailableError, QuoteNetworkError, QuotesExpiredError

# ---------------------------------------------------------------------------
# Test constants
# ---------------------------------------------------------------------------

BASE_URL = "https://bridge.api.cx.metamask.io"
URL_FLAGS = f"{BASE_URL}/getAllFeatureFlags"

# aioresponses needs regex patterns to match URLs with query params
RE_TOKENS = re.compile(r"https://bridge\.api\.cx\.metamask\.io/getTokens\?.*")
RE_QUOTE = re.compile(r"https://bridge\.api\.cx\.metamask\.io/getQuote\?.*")

ZERO_ADDRESS = "0x" + "00" * 20
DEST_USDC = "0x0b2C639c533813f4Aa9D7837CAf62653d097Ff85"

STANDARD_BRIDGE_CONFIG = {
    "api": {"base_url": BASE_URL + "/", "client_id": "extension", "timeout_seconds": 5},
}

NOW = 1_700_000_000.0


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------


def _flags_response() -> dict:
    return {
        "extension-support": True,
        "src-network-allowlist": [1, "0xa", 42161],
        "dest-network-allowlist": ["0x1", 10, 59144],
    }


def _quote_item(dest_amount: int = 2_495_000_000, bridge_id: str = "across", approval=None) -> dict:
    item = {
        "quote": {
            "requestId": f"req-{bridge_id}",
            "srcChainId": 1,
            "srcAsset": {"address": ZERO_ADDRESS, "chainId": 1, "decimals": 18, "symbol": "ETH"},
            "srcTokenAmount": "991250000000000000",
            "destChainId": 10,
            "destAsset": {"address": DEST_USDC, "chainId": 10, "decimals": 6, "symbol": "USDC"},
            "destTokenAmount": str(dest_amount),
            "bridgeId": bridge_id,
        },
        "trade": {
            "chainId": 1,
            "to": "0x0439e60F02a8900a951603950d8D4527f400C3f1",
            "from": "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
            "value": "0xde0b6b3a7640000",
            "data": "0x3ce33bff",
            "gasLimit": 180_000,
        },
        "estimatedProcessingTimeInSeconds": 60,
    }
    if approval is not None:
        item["approval"] = approval
    return item


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _make_client(bridge_config=None, session=None):
    """Create a BridgeApiClient with patched config and logger."""
    with (
        patch("execution.bridge_api_client.get_config") as mock_cfg,
        patch("execution.bridge_api_client.setup_module_logger") as mock_logger,
    ):
        mock_loader = MagicMock()
        mock_loader.get_bridge_config.return_value = bridge_config or STANDARD_BRIDGE_CONFIG
        mock_cfg.return_value = mock_loader
        mock_logger.return_value = MagicMock()

        from execution.bridge_api_client import BridgeApiClient

        return BridgeApiClient(session=session, clock=lambda: NOW)


@pytest.fixture
async def client():
    client = _make_client()
    yield client
    await client.close()


def _sent_request(mocked):
    """kwargs of the single recorded request."""
    calls = [call for calls in mocked.requests.values() for call in calls]
    assert len(calls) == 1
    return calls[0].kwargs


# ---------------------------------------------------------------------------
# A. Feature flag tests
# ---------------------------------------------------------------------------


class TestFeatureFlags:
    async def test_maps_flags_and_normalizes_chain_ids(self, client):
        with aioresponses() as mocked:
            mocked.get(URL_FLAGS, payload=_flags_response())
            flags = await client.get_bridge_feature_flags()

        assert flags.extension_support_enabled is True
        assert flags.source_allowlist == (1, 10, 42161)
        assert flags.dest_allowlist == (1, 10, 59144)

    async def test_missing_keys_default_to_disabled(self, client):
        with aioresponses() as mocked:
            mocked.get(URL_FLAGS, payload={})
            flags = await client.get_bridge_feature_flags()

        assert flags.extension_support_enabled is False
        assert flags.source_allowlist == ()

    async def test_sends_client_id_header(self, client):
        with aioresponses() as mocked:
            mocked.get(URL_FLAGS, payload=_flags_response())
            await client.get_bridge_feature_flags()
            kwargs = _sent_request(mocked)

        assert kwargs["headers"] == {"X-Client-Id": "extension"}

    async def test_http_error_raises_bridge_api_error(self, client):
        with aioresponses() as mocked:
            mocked.get(URL_FLAGS, status=500)
            with pytest.raises(BridgeApiError, match="getAllFeatureFlags"):
                await client.get_bridge_feature_flags()


# ---------------------------------------------------------------------------
# B. Token list tests
# ---------------------------------------------------------------------------


class TestTokens:
    async def test_keyed_by_lowercase_address(self, client):
        tokens = [
            {"address": DEST_USDC, "symbol": "USDC", "decimals": 6, "chainId": 10},
            {"address": ZERO_ADDRESS, "symbol": "ETH", "decimals": 18, "chainId": 10},
        ]
        with aioresponses() as mocked:
            mocked.get(RE_TOKENS, payload=tokens)
            result = await client.get_tokens(10)
            kwargs = _sent_request(mocked)

        assert set(result) == {DEST_USDC.lower(), ZERO_ADDRESS}
        assert result[DEST_USDC.lower()]["symbol"] == "USDC"
        assert kwargs["params"] == {"chainId": "10"}

    async def test_skips_malformed_entries(self, client):
        tokens = [{"symbol": "NOADDR", "decimals": 18}, {"address": DEST_USDC}, "junk"]
        with aioresponses() as mocked:
            mocked.get(RE_TOKENS, payload=tokens)
            assert await client.get_tokens(10) == {}

    async def test_transport_error_raises(self, client):
        with aioresponses() as mocked:
            mocked.get(RE_TOKENS, exception=aiohttp.ClientConnectionError("refused"))
            with pytest.raises(BridgeApiError, match="chain 10"):
                await client.get_tokens(10)


# ---------------------------------------------------------------------------
# C. Quote fetch tests
# ---------------------------------------------------------------------------


class TestFetchQuotes:
    async def test_parses_quotes(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[_quote_item(), _quote_item(2_490_000_000, "hop")])
            quotes = await client.fetch_quotes(request_factory())

        assert [q.aggregator_id for q in quotes] == ["across", "hop"]
        first = quotes[0]
        assert first.dest_token_amount == 2_495_000_000
        assert first.dest_asset.decimals == 6
        assert first.dest_asset.chain_id == 10
        assert first.src_token_amount == 991_250_000_000_000_000
        assert first.estimated_gas == 180_000
        assert first.fetched_at_ms == 1_700_000_000_000
        assert first.request_id == "req-across"
        assert first.trade["data"] == "0x3ce33bff"
        assert first.estimated_processing_time_seconds == 60

    async def test_approval_gas_added(self, client, request_factory):
        item = _quote_item(approval={"gasLimit": "0xea60"})
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[item])
            quotes = await client.fetch_quotes(request_factory())

        assert quotes[0].estimated_gas == 180_000 + 60_000

    async def test_request_params(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[_quote_item()])
            await client.fetch_quotes(request_factory())
            params = _sent_request(mocked)["params"]

        assert params["srcChainId"] == "1"
        assert params["destChainId"] == "10"
        assert params["srcTokenAddress"] == ZERO_ADDRESS
        assert params["srcTokenAmount"] == str(10**18)
        assert params["slippage"] == "0.5"

    async def test_none_fields_not_sent(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[_quote_item()])
            await client.fetch_quotes(request_factory(wallet_address=None))
            params = _sent_request(mocked)["params"]

        assert "walletAddress" not in params

    async def test_malformed_quotes_skipped(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[{"quote": {}}, _quote_item()])
            quotes = await client.fetch_quotes(request_factory())

        assert len(quotes) == 1

    async def test_empty_list_is_no_routes(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[])
            with pytest.raises(NoRoutesAvailableError):
                await client.fetch_quotes(request_factory())

    async def test_all_malformed_is_no_routes(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload=[{"quote": {"bridgeId": "x"}}])
            with pytest.raises(NoRoutesAvailableError):
                await client.fetch_quotes(request_factory())


# ---------------------------------------------------------------------------
# D. Error classification tests
# ---------------------------------------------------------------------------


class TestQuoteErrors:
    async def test_gone_is_expired(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, status=410)
            with pytest.raises(QuotesExpiredError):
                await client.fetch_quotes(request_factory())

    async def test_server_error_is_network_error(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, status=503)
            with pytest.raises(QuoteNetworkError, match="503"):
                await client.fetch_quotes(request_factory())

    async def test_timeout_is_network_error(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, exception=asyncio.TimeoutError())
            with pytest.raises(QuoteNetworkError):
                await client.fetch_quotes(request_factory())

    async def test_unexpected_payload_is_network_error(self, client, request_factory):
        with aioresponses() as mocked:
            mocked.get(RE_QUOTE, payload={"error": "bad request"})
            with pytest.raises(QuoteNetworkError, match="Unexpected"):
                await client.fetch_quotes(request_factory())


# ---------------------------------------------------------------------------
# E. Session lifecycle tests
# ---------------------------------------------------------------------------


class TestSessionLifecycle:
    async def test_close_releases_owned_session(self):
        client = _make_client()
        with aioresponses() as mocked:
            mocked.get(URL_FLAGS, payload={})
            await client.get_bridge_feature_flags()

        session = client._session
        await client.close()

        assert session.closed
        assert client._session is None

    async def test_shared_session_not_closed(self):
        session = aiohttp.ClientSession()
        client = _make_client(session=session)

        await client.close()

        assert not session.closed
        await session.close()
