"""
HTTP client for the bridge quote API.

Implements the quote provider, feature-flag source and token-list source
collaborators over aiohttp. Transport and HTTP failures are translated into
the classified errors in ``shared.errors`` at this boundary.

Usage:
    client = BridgeApiClient()
    flags = await client.get_bridge_feature_flags()
    quotes = await client.fetch_quotes(request)
    await client.close()
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any, cast

import aiohttp

from bridge_logging.logger_manager import setup_module_logger
from config.loader import get_config
from core.amounts import parse_quantity
from shared.constants import (
    DEFAULT_BRIDGE_API_BASE_URL,
    DEFAULT_BRIDGE_CLIENT_ID,
    DEFAULT_QUOTE_TIMEOUT_SECONDS,
    FEATURE_FLAG_DEST_ALLOWLIST,
    FEATURE_FLAG_EXTENSION_SUPPORT,
    FEATURE_FLAG_SRC_ALLOWLIST,
)
from shared.errors import (
    BridgeApiError,
    NoRoutesAvailableError,
    QuoteNetworkError,
    QuotesExpiredError,
)
from shared.types import BridgeAsset, BridgeFeatureFlags, Quote, QuoteRequest

_HTTP_GONE = 410


def _chain_id(value: int | str) -> int:
    """Chain ids arrive as ints or 0x-prefixed hex strings."""
    return value if isinstance(value, int) else parse_quantity(value)


def _parse_asset(raw: dict[str, Any]) -> BridgeAsset:
    return BridgeAsset(
        address=raw["address"],
        decimals=int(raw["decimals"]),
        chain_id=_chain_id(raw["chainId"]),
        symbol=raw.get("symbol"),
    )


def _gas_limit(tx: dict[str, Any] | None) -> int:
    if not tx or tx.get("gasLimit") is None:
        return 0
    return parse_quantity(tx["gasLimit"])


def parse_quote(item: dict[str, Any], fetched_at_ms: int) -> Quote:
    """Build a ``Quote`` from one ``/getQuote`` response entry."""
    quote = item["quote"]
    trade = item.get("trade")
    return Quote(
        src_asset=_parse_asset(quote["srcAsset"]),
        dest_asset=_parse_asset(quote["destAsset"]),
        src_token_amount=parse_quantity(quote["srcTokenAmount"]),
        dest_token_amount=parse_quantity(quote["destTokenAmount"]),
        # Approval (if any) is paid on top of the trade itself
        estimated_gas=_gas_limit(trade) + _gas_limit(item.get("approval")),
        aggregator_id=str(quote.get("bridgeId", "")),
        fetched_at_ms=fetched_at_ms,
        request_id=quote.get("requestId"),
        trade=trade,
        estimated_processing_time_seconds=item.get("estimatedProcessingTimeInSeconds"),
    )


class BridgeApiClient:
    """
    Async bridge API client.

    Accepts an optional shared ``aiohttp.ClientSession``; otherwise a session
    is created lazily and closed by ``close()``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        api_cfg = get_config().get_bridge_config().get("api", {})

        self._base_url: str = (api_cfg.get("base_url") or DEFAULT_BRIDGE_API_BASE_URL).rstrip("/")
        self._client_id: str = api_cfg.get("client_id") or DEFAULT_BRIDGE_CLIENT_ID
        self._timeout: float = api_cfg.get("timeout_seconds", DEFAULT_QUOTE_TIMEOUT_SECONDS)

        self._session = session
        self._owns_session = session is None
        self._clock = clock if clock is not None else time.time

        self._logger = setup_module_logger(
            "bridge_api", "bridge_api.log", module_folder="Bridge_Api_Logs"
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_bridge_feature_flags(self) -> BridgeFeatureFlags:
        try:
            data = await self._get("/getAllFeatureFlags")
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._logger.warning("Feature flag fetch failed: %s", exc)
            raise BridgeApiError(f"getAllFeatureFlags failed: {exc}") from exc

        flags = BridgeFeatureFlags(
            extension_support_enabled=bool(data.get(FEATURE_FLAG_EXTENSION_SUPPORT, False)),
            source_allowlist=tuple(_chain_id(c) for c in data.get(FEATURE_FLAG_SRC_ALLOWLIST, [])),
            dest_allowlist=tuple(_chain_id(c) for c in data.get(FEATURE_FLAG_DEST_ALLOWLIST, [])),
        )
        self._logger.info(
            "Feature flags: extension_support=%s src=%s dest=%s",
            flags.extension_support_enabled,
            flags.source_allowlist,
            flags.dest_allowlist,
        )
        return flags

    async def get_tokens(self, chain_id: int) -> dict[str, dict[str, Any]]:
        """Token list for ``chain_id`` keyed by lowercase address."""
        try:
            data = await self._get("/getTokens", params={"chainId": str(chain_id)})
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            self._logger.warning("Token list fetch failed for chain %d: %s", chain_id, exc)
            raise BridgeApiError(f"getTokens failed for chain {chain_id}: {exc}") from exc

        tokens: dict[str, dict[str, Any]] = {}
        for token in cast(list, data):
            if not isinstance(token, dict) or not token.get("address") or "decimals" not in token:
                continue
            tokens[token["address"].lower()] = token
        return tokens

    async def fetch_quotes(self, request: QuoteRequest) -> list[Quote]:
        params = {
            key: str(value)
            for key, value in request.to_dict().items()
            if value is not None
        }
        try:
            data = await self._get("/getQuote", params=params)
        except aiohttp.ClientResponseError as exc:
            if exc.status == _HTTP_GONE:
                raise QuotesExpiredError(f"Quotes expired: {exc.message}") from exc
            raise QuoteNetworkError(f"getQuote HTTP {exc.status}: {exc.message}") from exc
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise QuoteNetworkError(f"getQuote failed: {exc!r}") from exc

        if not isinstance(data, list):
            raise QuoteNetworkError(f"Unexpected getQuote response: {type(data).__name__}")

        fetched_at_ms = int(self._clock() * 1000)
        quotes: list[Quote] = []
        for item in data:
            try:
                quotes.append(parse_quote(item, fetched_at_ms))
            except (KeyError, TypeError, ValueError) as exc:
                self._logger.warning("Skipping malformed quote: %s", exc)

        if not quotes:
            raise NoRoutesAvailableError(
                f"No routes from chain {request.src_chain_id} to {request.dest_chain_id}"
            )
        self._logger.info("Received %d quote(s) for %s", len(quotes), params)
        return quotes

    async def close(self) -> None:
        """Close the underlying aiohttp session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET with client-id header and timeout."""
        session = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=self._timeout)
        headers = {"X-Client-Id": self._client_id}
        async with session.get(
            f"{self._base_url}{path}", headers=headers, params=params, timeout=timeout
        ) as resp:
            resp.raise_for_status()
            return await resp.json()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Lazy-init aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session
