"""Assertion entry points used by test declarations.

``to_be_accepted`` takes a mixed list of balance expectations and receipt
checks, ``to_be_rejected`` an error substring. Both raise on failure and return
the verdict otherwise.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Sequence, Union

from .context import HarnessContext
from .expectations import BalanceChangeExpectation, ExpectedDelta
from .operations import OperationHandle
from .receipts import ReceiptPredicate
from .types import Verdict
from .verifier import ensure_not_started

logger = logging.getLogger(__name__)

Check = Union[ExpectedDelta, BalanceChangeExpectation, ReceiptPredicate]


def _split(checks: Sequence[Check]):
    balance, receipt = [], []
    for check in checks:
        if isinstance(check, ReceiptPredicate):
            receipt.append(check)
        elif isinstance(check, (ExpectedDelta, BalanceChangeExpectation)):
            balance.append(check)
        else:
            raise TypeError(f"unsupported check {check!r}")
    return balance, receipt


async def _finalization_handle(operation: Awaitable[Any]) -> Any:
    result = await operation
    if isinstance(result, OperationHandle):
        await result.wait_finalize()
    return result


async def to_be_accepted(
    ctx: HarnessContext,
    operation: Awaitable[Any],
    checks: Sequence[Check] = (),
    cross_layer: bool = False,
    await_finalization: bool = False,
) -> Verdict:
    """Assert ``operation`` settles and every check holds.

    With ``await_finalization`` the operation is awaited up to L1 finalization
    before the after snapshot. Finalization-dependent assertions are skipped in
    fast mode.
    """
    balance, receipt = _split(checks)

    if ctx.fast_mode and await_finalization:
        if inspect.iscoroutine(operation):
            operation.close()
        logger.info("fast mode: skipping finalization-dependent assertion")
        return Verdict.skipped("fast mode disables finalization")

    if await_finalization:
        ensure_not_started(operation)
        operation = _finalization_handle(operation)

    verdict = await ctx.outcomes.verify(operation, balance, receipt, cross_layer)
    verdict.raise_for_failure()
    return verdict


async def to_be_rejected(
    ctx: HarnessContext, operation: Awaitable[Any], expected_substring: str
) -> Verdict:
    verdict = await ctx.rejections.verify_rejected(operation, expected_substring)
    verdict.raise_for_failure()
    return verdict
