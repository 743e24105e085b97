"""Fee accounting for single-layer and cross-layer operations."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .constants import DEFAULT_GAS_PRICE_SCALE_PERCENT
from .errors import ErrorCode, QueryError
from .operations import OperationHandle, OperationKind, OperationStage
from .types import Account, Layer, Receipt

logger = logging.getLogger(__name__)


def gas_fee(receipt: Optional[Receipt]) -> int:
    """``gas_used * effective_gas_price`` of a receipt."""
    if receipt is None or receipt.gas_used is None or receipt.effective_gas_price is None:
        raise QueryError(
            ErrorCode.MALFORMED_RESPONSE,
            f"receipt {getattr(receipt, 'tx_hash', None)} lacks gas usage fields",
        )
    return receipt.gas_used * receipt.effective_gas_price


async def scaled_gas_price(wallet: Any, percent: int = DEFAULT_GAS_PRICE_SCALE_PERCENT) -> int:
    """Current gas price raised by ``percent`` so the tx is not underpriced on arrival."""
    gas_price = await wallet.get_gas_price()
    return gas_price * percent // 100


class FeeReconciler:
    """Computes the native-token cost an operation charged to one account.

    ``cross_layer`` marks an operation that spans both layers. For an L1->L2
    deposit the L2 execution is prepaid on L1 (base cost), so no fee is
    attributed to the account on L2. Withdrawals only charge the L2 source-side
    fee; the L1 finalization is paid by whoever submits it and is reconciled
    against that receipt separately.

    Only called when a fee has to be added back, so a fee that cannot be read
    from the receipt raises ``QueryError`` instead of counting as zero.
    """

    def compute_cost(
        self,
        account: Account,
        receipt: Optional[Receipt],
        layer: Layer,
        cross_layer: bool = False,
        handle: Optional[OperationHandle] = None,
    ) -> int:
        if handle is not None and handle.kind == OperationKind.DEPOSIT:
            return self._deposit_cost(account, handle, layer)
        if cross_layer and layer == Layer.L2 and handle is None:
            return 0

        if receipt is None:
            raise QueryError(
                ErrorCode.MALFORMED_RESPONSE, "operation settled without a receipt, fee unknown"
            )
        # Fees are charged on the layer that executed the transaction only.
        if receipt.layer is not None and receipt.layer != layer:
            return 0
        if handle is not None and receipt.layer is None and handle.source_layer != layer:
            return 0
        if not self._paid_by(receipt, account):
            return 0
        return gas_fee(receipt)

    def _paid_by(self, receipt: Receipt, account: Account) -> bool:
        if receipt.from_address is None:
            raise QueryError(
                ErrorCode.MALFORMED_RESPONSE, f"receipt {receipt.tx_hash} has no sender"
            )
        return receipt.paid_by(account.address)

    def _deposit_cost(self, account: Account, handle: OperationHandle, layer: Layer) -> int:
        # The L2 side of a deposit is prepaid on L1 through the base cost.
        if layer != Layer.L1:
            return 0
        l1_receipt = handle.receipt_at(OperationStage.L1_INCLUDED)
        fee = gas_fee(l1_receipt)
        if not self._paid_by(l1_receipt, account):
            return 0
        logger.debug(f"deposit {handle.hash}: l1 fee {fee} + base cost {handle.base_cost}")
        return fee + handle.base_cost
