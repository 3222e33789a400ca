"""
Shared constants for the bridge quote engine.

Chain ids, gas limits, timing defaults and sentinel addresses used across all modules.
"""

from decimal import Decimal

# ---------------------------------------------------------------------------
# Addresses
# ---------------------------------------------------------------------------

ZERO_ADDRESS = "0x" + "00" * 20  # Native-asset sentinel used by the bridge API

# ---------------------------------------------------------------------------
# Chain ids
# ---------------------------------------------------------------------------

CHAIN_ID_MAINNET = 1
CHAIN_ID_OPTIMISM = 10
CHAIN_ID_BSC = 56
CHAIN_ID_POLYGON = 137
CHAIN_ID_ZKSYNC_ERA = 324
CHAIN_ID_BASE = 8453
CHAIN_ID_ARBITRUM = 42161
CHAIN_ID_AVALANCHE = 43114
CHAIN_ID_LINEA_MAINNET = 59144
CHAIN_ID_OPTIMISM_SEPOLIA = 11155420

ALLOWED_BRIDGE_CHAIN_IDS = (
    CHAIN_ID_MAINNET,
    CHAIN_ID_BSC,
    CHAIN_ID_POLYGON,
    CHAIN_ID_ZKSYNC_ERA,
    CHAIN_ID_BASE,
    CHAIN_ID_OPTIMISM,
    CHAIN_ID_ARBITRUM,
    CHAIN_ID_AVALANCHE,
    CHAIN_ID_LINEA_MAINNET,
)

# ---------------------------------------------------------------------------
# Gas
# ---------------------------------------------------------------------------

GAS_LIMIT_SIMPLE = "0x5208"  # 21000, plain value transfer to an EOA
GAS_LIMIT_BASE_TOKEN_ESTIMATE = "0x186a0"  # 100000, token send with unknown recipient

DEFAULT_GAS_BUFFER_MULTIPLIER = 1.5
SIMPLE_SEND_NON_STANDARD_MULTIPLIER = 1.0
BLOCK_GAS_LIMIT_CAP_RATIO = Decimal("0.9")
SIMULATION_FALLBACK_RATIO = Decimal("0.95")

# Chains whose gas estimates are exact enough to skip the default buffer
CHAIN_ID_TO_GAS_LIMIT_BUFFER_MAP: dict[int, float] = {
    CHAIN_ID_OPTIMISM: 1.0,
    CHAIN_ID_OPTIMISM_SEPOLIA: 1.0,
}

# Zero-value native sends are estimated with a non-zero placeholder value
NATIVE_ESTIMATE_PLACEHOLDER_VALUE = "0xff"

GWEI_DECIMALS = 9

# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------

DEFAULT_SLIPPAGE = 0.5  # percent
MAX_ALLOWED_SLIPPAGE = 15  # percent
DEFAULT_DEBOUNCE_MS = 1000
DEFAULT_REFRESH_INTERVAL_SECONDS = 30
DEFAULT_QUOTE_TIMEOUT_SECONDS = 10
TO_AMOUNT_DISPLAY_PLACES = 3

# ---------------------------------------------------------------------------
# Bridge API
# ---------------------------------------------------------------------------

DEFAULT_BRIDGE_API_BASE_URL = "https://bridge.api.cx.metamask.io"
DEFAULT_BRIDGE_CLIENT_ID = "extension"

FEATURE_FLAG_EXTENSION_SUPPORT = "extension-support"
FEATURE_FLAG_SRC_ALLOWLIST = "src-network-allowlist"
FEATURE_FLAG_DEST_ALLOWLIST = "dest-network-allowlist"
