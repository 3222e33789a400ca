"""
AsyncWeb3-backed gas provider.

Runs ``eth_estimateGas`` and reports node-side rejections as a
``SimulationFailure`` carrying a fallback figure (a fraction of the current
block gas limit) instead of raising, so the estimator can recover locally.

Usage:
    from web3 import AsyncWeb3, AsyncHTTPProvider

    provider = Web3GasProvider(AsyncWeb3(AsyncHTTPProvider(rpc_url)))
    result = await provider.estimate_gas(params)
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, cast

from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, Web3RPCError
from web3.types import TxParams

from bridge_logging.logger_manager import setup_module_logger
from config.loader import get_config
from core.amounts import parse_hex_quantity, parse_quantity, to_hex
from shared.constants import SIMULATION_FALLBACK_RATIO
from shared.errors import GasProviderError
from shared.types import GasEstimate, GasEstimateParams, GasEstimateResult, SimulationFailure

# Error(string) selector: first 4 bytes of keccak256("Error(string)")
_ERROR_SELECTOR = bytes.fromhex("08c379a0")


def decode_revert_reason(data: bytes | str | None) -> str:
    """
    Decode a Solidity revert reason from raw data.

    Handles ``Error(string)`` selector (0x08c379a0).
    Returns "Unknown revert" for empty or unrecognized data.
    """
    if not data:
        return "Unknown revert"

    if isinstance(data, str):
        try:
            data = bytes.fromhex(data.removeprefix("0x"))
        except ValueError:
            return data

    if len(data) < 4:
        return data.hex()

    if data[:4] == _ERROR_SELECTOR and len(data) >= 68:
        # ABI-encoded Error(string): selector(4) + offset(32) + length(32) + data
        str_len = int.from_bytes(data[36:68], "big")
        return data[68 : 68 + str_len].decode("utf-8", errors="replace")

    return data.hex()


def _to_tx_params(params: GasEstimateParams) -> TxParams:
    tx: dict[str, Any] = {}
    if params.from_address:
        tx["from"] = Web3.to_checksum_address(params.from_address)
    if params.to:
        tx["to"] = Web3.to_checksum_address(params.to)
    if params.value:
        tx["value"] = parse_hex_quantity(params.value)
    if params.data:
        tx["data"] = params.data
    if params.gas_price:
        tx["gasPrice"] = parse_hex_quantity(params.gas_price)
    return cast(TxParams, tx)


class Web3GasProvider:
    """Gas provider over an injected ``AsyncWeb3`` connection."""

    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3

        cfg = get_config()
        gas_cfg = cfg.get_gas_config()
        gas_timing = cfg.get_timing_config().get("gas", {})

        self._fallback_ratio = Decimal(
            str(gas_cfg.get("simulation_fallback_ratio", SIMULATION_FALLBACK_RATIO))
        )
        self._timeout: float = gas_timing.get("estimate_timeout_seconds", 15)

        self._logger = setup_module_logger("gas_provider", "gas_provider.log", module_folder="Gas_Logs")

    async def estimate_gas(self, params: GasEstimateParams) -> GasEstimateResult:
        tx = _to_tx_params(params)
        try:
            gas = await asyncio.wait_for(self._w3.eth.estimate_gas(tx), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise GasProviderError(f"Gas estimate timed out after {self._timeout}s") from exc
        except (ContractLogicError, Web3RPCError) as exc:
            data = getattr(exc, "data", None)
            reason = decode_revert_reason(data) if isinstance(data, (bytes, str)) else str(exc)
            block_gas_limit = await self.get_block_gas_limit()
            fallback = int(Decimal(parse_quantity(block_gas_limit)) * self._fallback_ratio)
            self._logger.warning("Gas simulation failed for %s: %s", params.to, reason)
            return SimulationFailure(
                reason=reason, gas=to_hex(fallback), block_gas_limit=block_gas_limit
            )

        return GasEstimate(gas=to_hex(int(gas)))

    async def get_block_gas_limit(self) -> str:
        try:
            block = await asyncio.wait_for(self._w3.eth.get_block("latest"), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise GasProviderError("Block lookup timed out") from exc
        return to_hex(int(block["gasLimit"]))

    async def is_contract_address(self, address: str) -> bool:
        code = await self._w3.eth.get_code(Web3.to_checksum_address(address))
        return len(code) > 0
