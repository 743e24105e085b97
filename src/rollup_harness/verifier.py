"""Outcome and rejection verification.

``OutcomeVerifier.verify`` brackets a single operation between two balance
snapshots:

1. snapshot every (account, layer, token) named by the expectations,
2. await the operation up to its settlement stage,
3. snapshot the same keys again,
4. compare each observed change (plus the reconciled fee where the expectation
   excludes it) with the declared amount,
5. evaluate every receipt predicate against the settlement receipt.

All violations are collected into one ``Verdict``. Read failures raise
``QueryError`` and a rejected operation raises ``OperationFailed``; neither is a
verdict.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, List, Optional, Sequence, Tuple, Union

from .errors import ErrorCode, HarnessError, OperationFailed
from .expectations import BalanceChangeExpectation, ExpectedDelta, flatten
from .fees import FeeReconciler
from .oracle import BalanceOracle
from .operations import OperationHandle
from .receipts import ReceiptPredicate
from .types import Receipt, Verdict, Violation, ViolationKind, is_native_token

logger = logging.getLogger(__name__)

Expectation = Union[ExpectedDelta, BalanceChangeExpectation]


def ensure_not_started(operation: Awaitable[Any]) -> None:
    if asyncio.isfuture(operation):
        raise HarnessError(
            ErrorCode.INVALID_OPERATION,
            "operation was already scheduled; pass the un-awaited coroutine so "
            "balances are read before submission",
        )
    if inspect.iscoroutine(operation) and inspect.getcoroutinestate(operation) != inspect.CORO_CREATED:
        raise HarnessError(ErrorCode.INVALID_OPERATION, "operation coroutine already started")


async def settle(result: Any) -> Tuple[Optional[Receipt], Optional[OperationHandle]]:
    """Resolve a submission result to its settlement receipt."""
    if isinstance(result, OperationHandle):
        return await result.wait(), result
    if result is None or isinstance(result, Receipt):
        return result, None
    raise HarnessError(
        ErrorCode.INVALID_OPERATION,
        f"operation resolved to {type(result).__name__}, expected a receipt or handle",
    )


class OutcomeVerifier:
    def __init__(self, oracle: BalanceOracle, reconciler: Optional[FeeReconciler] = None):
        self.oracle = oracle
        self.reconciler = reconciler or FeeReconciler()

    async def verify(
        self,
        operation: Awaitable[Any],
        expectations: Sequence[Expectation] = (),
        receipt_checks: Sequence[ReceiptPredicate] = (),
        cross_layer: bool = False,
    ) -> Verdict:
        ensure_not_started(operation)
        deltas = flatten(expectations)
        keys = []
        for delta in deltas:
            self.oracle.register(delta.account)
            if delta.key not in keys:
                keys.append(delta.key)

        try:
            before = await self.oracle.snapshot(keys)
        except BaseException:
            # The operation is never submitted; close it to avoid a never-awaited warning.
            if inspect.iscoroutine(operation):
                operation.close()
            raise

        try:
            result = await operation
            receipt, handle = await settle(result)
        except HarnessError:
            raise
        except Exception as exc:
            raise OperationFailed(
                ErrorCode.OPERATION_FAILED, f"operation was rejected: {exc}"
            ) from exc

        after = await self.oracle.snapshot(keys)
        actual = after.diff(before)

        violations: List[Violation] = []
        for delta in deltas:
            observed = actual[delta.key]
            if delta.exclude_fee and is_native_token(delta.token):
                observed += self.reconciler.compute_cost(
                    delta.account, receipt, delta.layer, cross_layer, handle
                )
            if observed != delta.amount:
                violations.append(Violation(
                    kind=ViolationKind.BALANCE,
                    message="balance change mismatch",
                    key=delta.key,
                    expected=delta.amount,
                    actual=observed,
                ))

        for check in receipt_checks:
            if not check.evaluate(receipt):
                violations.append(Violation(
                    kind=ViolationKind.RECEIPT,
                    message=check.failure_message,
                    actual=receipt,
                ))

        verdict = Verdict.from_violations(violations, receipt=receipt, handle=handle)
        if verdict.failed:
            logger.warning(verdict.describe())
        else:
            logger.debug(
                f"verified {len(deltas)} balance change(s) and {len(receipt_checks)} receipt check(s)"
            )
        return verdict


class RejectionVerifier:
    async def verify_rejected(self, operation: Awaitable[Any], expected_substring: str) -> Verdict:
        """Await ``operation`` once; it must fail with ``expected_substring`` in its message."""
        try:
            result = await operation
            if isinstance(result, OperationHandle):
                await result.wait()
        except HarnessError:
            raise
        except Exception as exc:
            reason = str(exc)
            if expected_substring in reason:
                logger.debug(f"rejected as expected: {reason}")
                return Verdict.from_violations([])
            return Verdict.from_violations([Violation(
                kind=ViolationKind.REJECTION,
                message=(
                    f"expected rejection containing '{expected_substring}', "
                    f"got '{reason}'"
                ),
                expected=expected_substring,
                actual=reason,
            )])

        return Verdict.from_violations([Violation(
            kind=ViolationKind.REJECTION,
            message=f"expected rejection containing '{expected_substring}', got success",
            expected=expected_substring,
            actual=None,
        )])
