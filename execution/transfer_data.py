"""
Calldata encoding for token transfers.

Local ABI encoding only (no RPC): ERC-20 ``transfer``, ERC-721
``transferFrom`` and ERC-1155 ``safeTransferFrom``. ABIs are loaded from
``config/abis`` through the config loader.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from eth_typing import HexStr
from web3 import Web3

from config.loader import get_config
from core.amounts import parse_hex_quantity
from shared.errors import UnsupportedAssetStandardError
from shared.types import NftAsset, TokenAsset, TokenStandard

_w3 = Web3()


@lru_cache(maxsize=8)
def _contract(abi_name: str) -> Any:
    return _w3.eth.contract(abi=get_config().get_abi(abi_name))


def generate_erc20_transfer_data(to_address: str, amount: str | int) -> HexStr:
    """Encode ``transfer(to, amount)``; ``amount`` is base units (int or hex string)."""
    return _contract("erc20").encode_abi(
        abi_element_identifier="transfer",
        args=[Web3.to_checksum_address(to_address), parse_hex_quantity(amount)],
    )


def generate_erc721_transfer_data(to_address: str, from_address: str, token_id: int) -> HexStr:
    """Encode ``transferFrom(from, to, tokenId)``."""
    return _contract("erc721").encode_abi(
        abi_element_identifier="transferFrom",
        args=[
            Web3.to_checksum_address(from_address),
            Web3.to_checksum_address(to_address),
            int(token_id),
        ],
    )


def generate_erc1155_transfer_data(
    to_address: str, from_address: str, token_id: int, amount: str | int
) -> HexStr:
    """Encode ``safeTransferFrom(from, to, id, amount, "")``."""
    return _contract("erc1155").encode_abi(
        abi_element_identifier="safeTransferFrom",
        args=[
            Web3.to_checksum_address(from_address),
            Web3.to_checksum_address(to_address),
            int(token_id),
            parse_hex_quantity(amount),
            b"",
        ],
    )


def get_asset_transfer_data(
    send_token: TokenAsset | NftAsset,
    from_address: str,
    to_address: str,
    amount: str | int,
) -> HexStr:
    """Transfer calldata for any non-native asset."""
    if isinstance(send_token, TokenAsset):
        return generate_erc20_transfer_data(to_address, amount)
    if send_token.standard is TokenStandard.ERC721:
        return generate_erc721_transfer_data(to_address, from_address, send_token.token_id)
    if send_token.standard is TokenStandard.ERC1155:
        return generate_erc1155_transfer_data(
            to_address, from_address, send_token.token_id, amount
        )
    raise UnsupportedAssetStandardError(
        f"Cannot transfer NFT with standard {send_token.standard.value}"
    )
