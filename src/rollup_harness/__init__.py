"""Balance-diff and outcome verification for L1/L2 value transfers."""

from .constants import ETH_ADDRESS
from .context import HarnessContext
from .errors import (
    AssertionMismatch,
    ErrorCode,
    HarnessError,
    OperationFailed,
    QueryError,
    RejectionMismatch,
)
from .expectations import (
    BalanceChangeExpectation,
    ExpectedDelta,
    should_change_eth_balances,
    should_change_token_balances,
    should_only_take_fee,
)
from .fees import FeeReconciler, scaled_gas_price
from .matchers import to_be_accepted, to_be_rejected
from .operations import OperationHandle, OperationKind, OperationStage
from .oracle import BalanceOracle
from .receipts import ReceiptPredicate, check_receipt, receipt_type_is
from .types import Account, BalanceKey, BalanceSnapshot, Layer, Receipt, Verdict, VerdictStatus
from .verifier import OutcomeVerifier, RejectionVerifier
from .wallet import Wallet

__version__ = "0.1.0"

__all__ = [
    "ETH_ADDRESS",
    "Account", "BalanceKey", "BalanceSnapshot", "Layer", "Receipt", "Verdict", "VerdictStatus",
    "ErrorCode", "HarnessError", "QueryError", "OperationFailed",
    "AssertionMismatch", "RejectionMismatch",
    "BalanceOracle", "FeeReconciler", "scaled_gas_price",
    "ExpectedDelta", "BalanceChangeExpectation",
    "should_change_eth_balances", "should_change_token_balances", "should_only_take_fee",
    "ReceiptPredicate", "check_receipt", "receipt_type_is",
    "OperationHandle", "OperationKind", "OperationStage",
    "OutcomeVerifier", "RejectionVerifier",
    "HarnessContext", "to_be_accepted", "to_be_rejected",
    "Wallet",
]
