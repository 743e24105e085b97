"""Receipt predicates paired with failure messages."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from .constants import TX_STATUS_SUCCESS
from .types import Receipt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceiptPredicate:
    predicate: Callable[[Receipt], bool]
    failure_message: str

    def evaluate(self, receipt: Receipt) -> bool:
        """Total evaluation: a malformed receipt fails the check instead of raising."""
        if receipt is None:
            return False
        try:
            return bool(self.predicate(receipt))
        except (AttributeError, LookupError, TypeError, ValueError) as exc:
            logger.debug(f"receipt check '{self.failure_message}' raised {exc!r}")
            return False


def check_receipt(predicate: Callable[[Receipt], bool], message: str) -> ReceiptPredicate:
    return ReceiptPredicate(predicate=predicate, failure_message=message)


def receipt_type_is(tx_type: int, message: str = "Incorrect tx type in receipt") -> ReceiptPredicate:
    return check_receipt(lambda r: r.type is not None and r.type == tx_type, message)


def receipt_succeeded(message: str = "Transaction did not succeed") -> ReceiptPredicate:
    return check_receipt(lambda r: r.status == TX_STATUS_SUCCESS, message)


def receipt_has_l2_to_l1_logs(
    message: str = "Receipt carries no L2->L1 message",
) -> ReceiptPredicate:
    return check_receipt(lambda r: len(r.l2_to_l1_logs) > 0, message)
