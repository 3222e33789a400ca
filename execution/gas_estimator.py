"""
Gas limit estimation for sends with deterministic buffering.

Short-circuits to fixed limits where the answer is known without a network
call, otherwise asks the ``GasProvider`` and buffers the result against the
current block gas limit. A simulation failure that still reports a raw gas
figure is recovered locally; every other failure propagates.

Usage:
    estimator = GasEstimator(Web3GasProvider(w3))
    gas = await estimator.estimate(params, chain_id=1)
"""

from __future__ import annotations

import dataclasses
from decimal import ROUND_HALF_UP, Decimal

from bridge_logging.logger_manager import setup_module_logger
from config.loader import get_config
from core.amounts import parse_hex_quantity, parse_quantity, to_base_units, to_hex
from execution.transfer_data import get_asset_transfer_data
from shared.constants import (
    BLOCK_GAS_LIMIT_CAP_RATIO,
    CHAIN_ID_TO_GAS_LIMIT_BUFFER_MAP,
    DEFAULT_GAS_BUFFER_MULTIPLIER,
    GAS_LIMIT_BASE_TOKEN_ESTIMATE,
    GAS_LIMIT_SIMPLE,
    GWEI_DECIMALS,
    NATIVE_ESTIMATE_PLACEHOLDER_VALUE,
    SIMPLE_SEND_NON_STANDARD_MULTIPLIER,
    ZERO_ADDRESS,
)
from shared.errors import GasSimulationFailedError
from shared.interfaces import GasProvider
from shared.types import (
    GasEstimateParams,
    NftAsset,
    SimulationFailure,
    TokenAsset,
)


def add_gas_buffer(
    initial_gas_limit: str | int,
    block_gas_limit: str | int,
    buffer_multiplier: float = DEFAULT_GAS_BUFFER_MULTIPLIER,
    cap_ratio: Decimal = BLOCK_GAS_LIMIT_CAP_RATIO,
) -> str:
    """
    Buffer ``initial_gas_limit`` without exceeding ``cap_ratio`` of the block gas limit.

    An initial figure already at or above the cap is returned unchanged.
    """
    initial = parse_quantity(initial_gas_limit)
    upper = int(
        (Decimal(parse_quantity(block_gas_limit)) * cap_ratio).to_integral_value(
            rounding=ROUND_HALF_UP
        )
    )
    buffered = int(
        (Decimal(initial) * Decimal(str(buffer_multiplier))).to_integral_value(
            rounding=ROUND_HALF_UP
        )
    )

    if initial >= upper:
        return to_hex(initial)
    if buffered < upper:
        return to_hex(buffered)
    return to_hex(upper)


def get_rounded_gas_price(gas_price_gwei: str | Decimal) -> str:
    """Gwei estimate rounded to 9 decimal places, returned as hex wei."""
    rounded = Decimal(str(gas_price_gwei)).quantize(
        Decimal(1).scaleb(-GWEI_DECIMALS), rounding=ROUND_HALF_UP
    )
    return to_hex(to_base_units(rounded, GWEI_DECIMALS))


class GasEstimator:
    """Applies the gas buffering policy on top of a ``GasProvider``."""

    def __init__(self, gas_provider: GasProvider) -> None:
        self._provider = gas_provider

        gas_cfg = get_config().get_gas_config()
        limits = gas_cfg.get("limits", {})

        self._default_multiplier = float(
            gas_cfg.get("default_buffer_multiplier", DEFAULT_GAS_BUFFER_MULTIPLIER)
        )
        self._simple_non_standard_multiplier = float(
            gas_cfg.get("simple_send_non_standard_multiplier", SIMPLE_SEND_NON_STANDARD_MULTIPLIER)
        )
        # JSON object keys are strings
        overrides = gas_cfg.get("chain_buffer_overrides", CHAIN_ID_TO_GAS_LIMIT_BUFFER_MAP)
        self._chain_overrides: dict[int, float] = {
            int(chain_id): float(multiplier) for chain_id, multiplier in overrides.items()
        }
        self._simple_limit: str = limits.get("simple", GAS_LIMIT_SIMPLE)
        self._base_token_estimate: str = limits.get(
            "base_token_estimate", GAS_LIMIT_BASE_TOKEN_ESTIMATE
        )
        self._cap_ratio = Decimal(
            str(gas_cfg.get("block_gas_limit_cap_ratio", BLOCK_GAS_LIMIT_CAP_RATIO))
        )

        self._logger = setup_module_logger("gas", "gas.log", module_folder="Gas_Logs")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def buffer_multiplier(self, chain_id: int, is_simple_send_on_non_standard_chain: bool) -> float:
        if is_simple_send_on_non_standard_chain:
            return self._simple_non_standard_multiplier
        return self._chain_overrides.get(chain_id, self._default_multiplier)

    async def estimate(
        self,
        params: GasEstimateParams,
        *,
        chain_id: int,
        send_token: TokenAsset | NftAsset | None = None,
        is_non_standard_eth_chain: bool = False,
    ) -> str:
        """
        Return a hex gas limit for ``params``.

        ``params.to`` is the recipient and ``params.value`` the amount in base
        units (hex), for native and token sends alike.
        """
        if send_token is not None and not params.to:
            # Without a recipient the transfer calldata cannot be generated
            return self._base_token_estimate

        is_simple_non_standard = False

        if send_token is not None:
            estimate_params = GasEstimateParams(
                from_address=params.from_address,
                to=send_token.address,
                value="0x0",
                data=get_asset_transfer_data(
                    send_token,
                    from_address=params.from_address or ZERO_ADDRESS,
                    to_address=params.to,
                    amount=params.value or "0x0",
                ),
                gas_price=params.gas_price,
            )
        else:
            if not params.data:
                is_contract = (
                    await self._provider.is_contract_address(params.to) if params.to else False
                )
                if not is_contract and not is_non_standard_eth_chain:
                    self._logger.debug("Simple send to %s, using fixed gas limit", params.to)
                    return self._simple_limit
                is_simple_non_standard = not is_contract

            value = params.value
            if not value or parse_hex_quantity(value) == 0:
                value = NATIVE_ESTIMATE_PLACEHOLDER_VALUE
            estimate_params = dataclasses.replace(params, value=value)

        multiplier = self.buffer_multiplier(chain_id, is_simple_non_standard)
        result = await self._provider.estimate_gas(estimate_params)

        if isinstance(result, SimulationFailure):
            return await self._recover_from_simulation_failure(result, multiplier)

        block_gas_limit = await self._provider.get_block_gas_limit()
        gas = add_gas_buffer(result.gas, block_gas_limit, multiplier, self._cap_ratio)
        self._logger.info(
            "Gas estimated: raw=%s buffered=%s multiplier=%s chain=%d",
            result.gas,
            gas,
            multiplier,
            chain_id,
        )
        return gas

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    async def _recover_from_simulation_failure(
        self, failure: SimulationFailure, multiplier: float
    ) -> str:
        if failure.gas is None:
            raise GasSimulationFailedError(f"Gas simulation failed: {failure.reason}")

        block_gas_limit = failure.block_gas_limit or await self._provider.get_block_gas_limit()
        gas = add_gas_buffer(failure.gas, block_gas_limit, multiplier, self._cap_ratio)
        self._logger.warning(
            "Gas simulation failed (%s); using fallback estimate %s from raw %s",
            failure.reason,
            gas,
            failure.gas,
        )
        return gas
