"""
Bridge Quote Engine main entrypoint.

Single-process asyncio runner that drives one bridge flow from environment
variables: loads feature flags, selects networks and tokens, enters the
amount, then keeps the quote set refreshed until SIGINT/SIGTERM, logging the
recommended quote after every settled fetch.

Environment:
    BRIDGE_WALLET_ADDRESS       wallet requesting quotes (required)
    BRIDGE_SRC_CHAIN_ID         source chain id (required)
    BRIDGE_DEST_CHAIN_ID        destination chain id (required)
    BRIDGE_SRC_TOKEN_ADDRESS    source token, native asset when unset
    BRIDGE_DEST_TOKEN_ADDRESS   destination token (required)
    BRIDGE_SRC_AMOUNT           human-readable amount, e.g. "1.5"
    BRIDGE_SRC_TOKEN_DECIMALS   source token decimals (default 18)
    BRIDGE_SLIPPAGE             percent slippage
    BRIDGE_RPC_URL              optional source-chain RPC for gas price and balance
    BRIDGE_NATIVE_TO_DEST_RATE  optional native->destination token rate for ranking

Usage:
    python main.py
"""

from __future__ import annotations

import asyncio
import json
import os
import signal
import sys

from dotenv import load_dotenv

from bridge_logging.logger_manager import setup_module_logger
from config.loader import get_config, get_env_var
from config.validate import ConfigValidationError, validate_all_configs
from shared.errors import BridgeEngineError
from shared.serialization_utils import DecimalEncoder

# ---------------------------------------------------------------------------
# Module logger
# ---------------------------------------------------------------------------
_logger = setup_module_logger("main", "main.log", module_folder="Main_Logs", console=True)


# ---------------------------------------------------------------------------
# Startup banner
# ---------------------------------------------------------------------------


def _log_banner(
    base_url: str,
    wallet: str,
    src_chain_id: int,
    dest_chain_id: int,
    amount: str,
    refresh_seconds: float,
) -> None:
    """Log a concise startup summary."""
    _logger.info("=" * 60)
    _logger.info("Bridge Quote Engine starting")
    _logger.info("=" * 60)
    _logger.info("  api             : %s", base_url)
    _logger.info("  wallet          : %s", wallet)
    _logger.info("  route           : %d -> %d", src_chain_id, dest_chain_id)
    _logger.info("  amount          : %s", amount or "(not set)")
    _logger.info("  refresh_interval: %ss", refresh_seconds)
    _logger.info("=" * 60)


# ---------------------------------------------------------------------------
# Quote reporting loop
# ---------------------------------------------------------------------------


async def _report_quotes(controller, shutdown_event: asyncio.Event) -> None:
    """Log the recommended quote each time a fetch settles."""
    from shared.types import RequestStatus

    last_fetched = None
    while not shutdown_event.is_set():
        state = await controller.wait_for_quotes()
        if state.status is RequestStatus.LOADING:
            await asyncio.sleep(0.1)
            continue

        if state.status is RequestStatus.ERROR:
            _logger.warning("Quote fetch failed: %s", state.error_code.value)
        elif state.last_fetched_ms != last_fetched:
            best = controller.recommended_quote()
            if best is not None:
                _logger.info(
                    "Recommended quote via %s: receive %s %s (%d quotes)",
                    best.aggregator_id,
                    controller.to_amount(),
                    best.dest_asset.symbol or best.dest_asset.address,
                    len(state.quotes),
                )
            _logger.debug(
                "Bridge state: %s", json.dumps(controller.get_state(), cls=DecimalEncoder)
            )
        last_fetched = state.last_fetched_ms
        await asyncio.sleep(1)


async def _apply_chain_context(controller, rpc_url: str, wallet: str, src_token: str | None) -> None:
    """Read gas price and the wallet's source balance from the source chain."""
    from web3 import AsyncWeb3
    from web3.providers import AsyncHTTPProvider

    from execution.balance_reader import Web3BalanceReader

    w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
    if not await w3.is_connected():
        _logger.warning("Cannot connect to %s, ranking without gas cost", rpc_url)
        return

    gas_price = await w3.eth.gas_price
    rate = os.getenv("BRIDGE_NATIVE_TO_DEST_RATE", "0")
    controller.set_gas_pricing(int(gas_price), rate)
    _logger.info("Gas price %d wei, native->dest rate %s", gas_price, rate)

    balance = await Web3BalanceReader(w3).get_balance(wallet, src_token)
    requested = controller.quote_request.src_token_amount
    if requested and balance < int(requested):
        _logger.warning("Insufficient balance: have %d, need %s", balance, requested)


# ---------------------------------------------------------------------------
# Main async entry
# ---------------------------------------------------------------------------


async def _run() -> None:
    """Wire the controller and keep quotes fresh until shutdown."""
    # ------------------------------------------------------------------
    # 1. Load environment and validate configuration
    # ------------------------------------------------------------------
    load_dotenv()

    try:
        validate_all_configs()
    except ConfigValidationError as exc:
        _logger.critical("Config validation failed:\n%s", exc)
        sys.exit(1)

    cfg = get_config()
    bridge_cfg = cfg.get_bridge_config()
    quotes_timing = cfg.get_timing_config().get("quotes", {})

    wallet: str = os.getenv("BRIDGE_WALLET_ADDRESS", "")
    src_chain_id: int = get_env_var("BRIDGE_SRC_CHAIN_ID", 0, int)
    dest_chain_id: int = get_env_var("BRIDGE_DEST_CHAIN_ID", 0, int)
    src_token: str | None = os.getenv("BRIDGE_SRC_TOKEN_ADDRESS") or None
    dest_token: str = os.getenv("BRIDGE_DEST_TOKEN_ADDRESS", "")
    amount: str = os.getenv("BRIDGE_SRC_AMOUNT", "")
    decimals: int = get_env_var("BRIDGE_SRC_TOKEN_DECIMALS", 18, int)
    slippage: float | None = get_env_var("BRIDGE_SLIPPAGE", None, float)
    rpc_url: str = os.getenv("BRIDGE_RPC_URL", "")

    if not wallet or not src_chain_id or not dest_chain_id:
        _logger.critical(
            "BRIDGE_WALLET_ADDRESS, BRIDGE_SRC_CHAIN_ID and BRIDGE_DEST_CHAIN_ID must be set"
        )
        sys.exit(1)

    _log_banner(
        bridge_cfg.get("api", {}).get("base_url", ""),
        wallet,
        src_chain_id,
        dest_chain_id,
        amount,
        quotes_timing.get("refresh_interval_seconds", 30),
    )

    # ------------------------------------------------------------------
    # 2. Initialize the API client and controller
    # ------------------------------------------------------------------
    from core.bridge_controller import BridgeController
    from execution.bridge_api_client import BridgeApiClient

    api_client = BridgeApiClient()
    controller = BridgeController(api_client)

    # ------------------------------------------------------------------
    # 3. Signal handling for graceful shutdown
    # ------------------------------------------------------------------
    shutdown_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(sig: signal.Signals) -> None:
        _logger.info("Received %s, initiating graceful shutdown", sig.name)
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _handle_signal, sig)

    reporter: asyncio.Task[None] | None = None
    try:
        # --------------------------------------------------------------
        # 4. Drive the flow the way a user would
        # --------------------------------------------------------------
        flags = await controller.set_bridge_feature_flags()
        if not flags.extension_support_enabled:
            _logger.warning("Bridging is disabled by feature flags")
        controller.update_quote_params(walletAddress=wallet)
        if slippage is not None:
            controller.update_quote_params(slippage=slippage)
        await controller.select_src_network(src_chain_id)
        await controller.select_dest_network(dest_chain_id)
        controller.set_from_token(src_token)
        controller.set_to_token(dest_token)
        controller.set_from_token_input_value(amount, decimals)

        if rpc_url:
            await _apply_chain_context(controller, rpc_url, wallet, src_token)

        request = controller.get_quote_request()
        if not request["isValid"]:
            _logger.critical("Quote request is incomplete: %s", request)
            return

        # --------------------------------------------------------------
        # 5. Report quotes until shutdown
        # --------------------------------------------------------------
        reporter = asyncio.create_task(
            _report_quotes(controller, shutdown_event), name="quote_reporter"
        )
        await shutdown_event.wait()
    except BridgeEngineError as exc:
        _logger.critical("Bridge flow failed: %s", exc, exc_info=exc)
    finally:
        _logger.info("Shutting down, stopping quote flow")
        if reporter is not None and not reporter.done():
            reporter.cancel()
            await asyncio.gather(reporter, return_exceptions=True)

        await controller.close()
        await api_client.close()
        _logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    """Synchronous entry point."""
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        _logger.info("Interrupted by user")


if __name__ == "__main__":
    main()
