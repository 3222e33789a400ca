"""
AsyncWeb3-backed balance reader.

Reads native balances via ``eth_getBalance`` and ERC-20 balances via
``balanceOf``. A token address of ``None`` or the zero address means the
chain's native asset.

Usage:
    from web3 import AsyncWeb3, AsyncHTTPProvider

    reader = Web3BalanceReader(AsyncWeb3(AsyncHTTPProvider(rpc_url)))
    wei = await reader.get_balance(wallet)
    usdc = await reader.get_balance(wallet, usdc_address)
"""

from __future__ import annotations

from decimal import Decimal

from web3 import AsyncWeb3, Web3

from bridge_logging.logger_manager import setup_module_logger
from config.loader import get_config
from core.amounts import from_base_units
from shared.constants import ZERO_ADDRESS
from shared.errors import BalanceReadError


class Web3BalanceReader:
    def __init__(self, w3: AsyncWeb3) -> None:
        self._w3 = w3
        self._erc20_abi = get_config().get_abi("erc20")
        self._logger = setup_module_logger(
            "balance_reader", "balance_reader.log", module_folder="Balance_Reader_Logs"
        )

    async def get_balance(self, address: str, token_address: str | None = None) -> int:
        """Balance of ``address`` in base units."""
        checksum = Web3.to_checksum_address(address)
        try:
            if token_address is None or token_address.lower() == ZERO_ADDRESS:
                return int(await self._w3.eth.get_balance(checksum))

            token = self._w3.eth.contract(
                address=Web3.to_checksum_address(token_address), abi=self._erc20_abi
            )
            return int(await token.functions.balanceOf(checksum).call())
        except Exception as e:
            self._logger.error(
                "Failed to read balance of %s (token=%s): %s", address, token_address, e
            )
            raise BalanceReadError(f"Balance lookup failed for {address}: {e}") from e

    async def get_formatted_balance(
        self, address: str, decimals: int, token_address: str | None = None
    ) -> Decimal:
        """Balance of ``address`` in human units."""
        return from_base_units(await self.get_balance(address, token_address), decimals)
