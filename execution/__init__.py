from execution.balance_reader import Web3BalanceReader
from execution.bridge_api_client import BridgeApiClient
from execution.gas_estimator import GasEstimator, add_gas_buffer, get_rounded_gas_price
from execution.tx_builder import TransactionBuilder
from execution.web3_gas_provider import Web3GasProvider

__all__ = [
    "BridgeApiClient",
    "GasEstimator",
    "TransactionBuilder",
    "Web3BalanceReader",
    "Web3GasProvider",
    "add_gas_buffer",
    "get_rounded_gas_price",
]
