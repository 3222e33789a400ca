"""
Transaction parameter construction from a draft send/swap.

``TransactionBuilder.build`` is a pure function of the draft: it picks
``to``/``value``/``data`` by asset kind and populates exactly one fee-model
branch (legacy ``gasPrice`` or EIP-1559 ``maxFeePerGas``/``maxPriorityFeePerGas``).

Usage:
    builder = TransactionBuilder()
    params = builder.build(draft, signer_default_address="0xabc...")
    await signer.submit(params)
"""

from __future__ import annotations

from bridge_logging.logger_manager import setup_module_logger
from core.amounts import parse_hex_quantity
from execution.gas_estimator import GasEstimator
from execution.transfer_data import (
    generate_erc20_transfer_data,
    generate_erc721_transfer_data,
    generate_erc1155_transfer_data,
)
from shared.errors import UnsupportedAssetStandardError
from shared.types import (
    DraftTransaction,
    GasEstimateParams,
    NativeAsset,
    NftAsset,
    TokenAsset,
    TokenStandard,
    TransactionEnvelopeType,
    TransactionParams,
)

_ZERO_VALUE = "0x0"


def _is_unset(fee: str | None) -> bool:
    return not fee or parse_hex_quantity(fee) == 0


class TransactionBuilder:
    def __init__(self) -> None:
        self._logger = setup_module_logger(
            "tx_builder", "tx_builder.log", module_folder="Tx_Builder_Logs"
        )

    def build(self, draft: DraftTransaction, signer_default_address: str) -> TransactionParams:
        """Build the final transaction params; the draft is not modified."""
        from_address = draft.from_address or signer_default_address
        asset = draft.asset

        if isinstance(asset, NativeAsset):
            to = draft.recipient_address
            value = draft.amount_value
            data = draft.user_input_hex_data or None
        elif isinstance(asset, TokenAsset):
            to = asset.address
            value = _ZERO_VALUE
            data = generate_erc20_transfer_data(
                to_address=_require_recipient(draft),
                amount=draft.amount_value,
            )
        elif isinstance(asset, NftAsset):
            to = asset.address
            value = _ZERO_VALUE
            data = self._nft_transfer_data(asset, draft, from_address)
        else:
            raise UnsupportedAssetStandardError(f"Unknown draft asset: {asset!r}")

        params = TransactionParams(
            from_address=from_address,
            to=to,
            value=value,
            data=data,
            # gas limit is required regardless of asset or fee model
            gas=draft.gas.gas_limit,
            type=TransactionEnvelopeType.LEGACY,
        )

        if draft.eip1559_support:
            max_fee = draft.gas.max_fee_per_gas
            if _is_unset(max_fee):
                max_fee = draft.gas.gas_price
            priority_fee = draft.gas.max_priority_fee_per_gas
            if _is_unset(priority_fee):
                priority_fee = max_fee
            params.type = TransactionEnvelopeType.FEE_MARKET
            params.max_fee_per_gas = max_fee
            params.max_priority_fee_per_gas = priority_fee
        else:
            params.gas_price = draft.gas.gas_price

        self._logger.debug(
            "Built %s transaction from=%s to=%s value=%s",
            params.type.name,
            params.from_address,
            params.to,
            params.value,
        )
        return params

    async def prepare(
        self,
        draft: DraftTransaction,
        signer_default_address: str,
        gas_estimator: GasEstimator,
        *,
        chain_id: int,
        is_non_standard_eth_chain: bool = False,
    ) -> TransactionParams:
        """
        Estimate and build. An unset ``draft.gas.gas_limit`` is filled in place
        with the estimate, so a reused draft keeps it.
        """
        if not draft.gas.gas_limit:
            send_token = draft.asset if isinstance(draft.asset, (TokenAsset, NftAsset)) else None
            draft.gas.gas_limit = await gas_estimator.estimate(
                GasEstimateParams(
                    from_address=draft.from_address or signer_default_address,
                    to=draft.recipient_address,
                    value=draft.amount_value,
                    data=draft.user_input_hex_data if send_token is None else None,
                    gas_price=draft.gas.gas_price,
                ),
                chain_id=chain_id,
                send_token=send_token,
                is_non_standard_eth_chain=is_non_standard_eth_chain,
            )
        return self.build(draft, signer_default_address)

    @staticmethod
    def _nft_transfer_data(asset: NftAsset, draft: DraftTransaction, from_address: str) -> str:
        recipient = _require_recipient(draft)
        if asset.standard is TokenStandard.ERC721:
            return generate_erc721_transfer_data(
                to_address=recipient,
                from_address=from_address,
                token_id=asset.token_id,
            )
        if asset.standard is TokenStandard.ERC1155:
            return generate_erc1155_transfer_data(
                to_address=recipient,
                from_address=from_address,
                token_id=asset.token_id,
                amount=parse_hex_quantity(draft.amount_value),
            )
        raise UnsupportedAssetStandardError(
            f"NFT standard {asset.standard.value} is not transferable"
        )


def _require_recipient(draft: DraftTransaction) -> str:
    if not draft.recipient_address:
        raise ValueError("Token transfers require a recipient address")
    return draft.recipient_address
