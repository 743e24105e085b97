"""Operation handles with explicit settlement stages.

A submitted operation moves through ``SUBMITTED -> L1_INCLUDED -> L2_APPLIED
-> FINALIZED``, but each kind only visits the stages on its own path. The
client library supplies one awaitable milestone per stage; the handle awaits
them in order exactly once and keeps the receipts they produce.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, IntEnum
from typing import Awaitable, Callable, Dict, Mapping, Optional, Tuple

from .errors import ErrorCode, HarnessError
from .types import Layer, Receipt

logger = logging.getLogger(__name__)

Milestone = Callable[[], Awaitable[Optional[Receipt]]]


class OperationKind(Enum):
    TRANSFER = "transfer"
    L1_TRANSFER = "l1_transfer"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    FINALIZE_WITHDRAWAL = "finalize_withdrawal"


class OperationStage(IntEnum):
    SUBMITTED = 0
    L1_INCLUDED = 1
    L2_APPLIED = 2
    FINALIZED = 3


STAGE_PATHS: Dict[OperationKind, Tuple[OperationStage, ...]] = {
    OperationKind.TRANSFER: (OperationStage.SUBMITTED, OperationStage.L2_APPLIED),
    OperationKind.L1_TRANSFER: (OperationStage.SUBMITTED, OperationStage.L1_INCLUDED),
    OperationKind.DEPOSIT: (
        OperationStage.SUBMITTED,
        OperationStage.L1_INCLUDED,
        OperationStage.L2_APPLIED,
    ),
    OperationKind.WITHDRAWAL: (
        OperationStage.SUBMITTED,
        OperationStage.L2_APPLIED,
        OperationStage.FINALIZED,
    ),
    OperationKind.FINALIZE_WITHDRAWAL: (OperationStage.SUBMITTED, OperationStage.L1_INCLUDED),
}

# Stage at which the balance effect of each kind is observable.
SETTLEMENT_STAGES: Dict[OperationKind, OperationStage] = {
    OperationKind.TRANSFER: OperationStage.L2_APPLIED,
    OperationKind.L1_TRANSFER: OperationStage.L1_INCLUDED,
    OperationKind.DEPOSIT: OperationStage.L2_APPLIED,
    OperationKind.WITHDRAWAL: OperationStage.L2_APPLIED,
    OperationKind.FINALIZE_WITHDRAWAL: OperationStage.L1_INCLUDED,
}

SOURCE_LAYERS: Dict[OperationKind, Layer] = {
    OperationKind.TRANSFER: Layer.L2,
    OperationKind.L1_TRANSFER: Layer.L1,
    OperationKind.DEPOSIT: Layer.L1,
    OperationKind.WITHDRAWAL: Layer.L2,
    OperationKind.FINALIZE_WITHDRAWAL: Layer.L1,
}


class OperationHandle:
    """A submitted operation awaiting its milestones."""

    def __init__(
        self,
        kind: OperationKind,
        tx_hash: str,
        milestones: Mapping[OperationStage, Milestone],
        base_cost: int = 0,
    ):
        path = STAGE_PATHS[kind]
        unknown = set(milestones) - set(path[1:])
        if unknown:
            names = ", ".join(sorted(s.name for s in unknown))
            raise HarnessError(
                ErrorCode.INVALID_STAGE, f"{kind.value} has no stage(s) {names}"
            )
        self.kind = kind
        self.hash = tx_hash
        self.base_cost = base_cost
        self.stage = OperationStage.SUBMITTED
        self._milestones = dict(milestones)
        self._receipts: Dict[OperationStage, Receipt] = {}
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"OperationHandle({self.kind.value}, {self.hash}, stage={self.stage.name})"

    @property
    def path(self) -> Tuple[OperationStage, ...]:
        return STAGE_PATHS[self.kind]

    @property
    def settlement_stage(self) -> OperationStage:
        return SETTLEMENT_STAGES[self.kind]

    @property
    def source_layer(self) -> Layer:
        return SOURCE_LAYERS[self.kind]

    def receipt_at(self, stage: OperationStage) -> Optional[Receipt]:
        return self._receipts.get(stage)

    async def wait_for(self, stage: OperationStage) -> Optional[Receipt]:
        """Await every milestone up to ``stage`` and return the receipt it produced."""
        if stage not in self.path:
            raise HarnessError(
                ErrorCode.INVALID_STAGE,
                f"{self.kind.value} never reaches {stage.name}",
            )
        async with self._lock:
            for step in self.path[1:]:
                if step > stage:
                    break
                if step <= self.stage:
                    continue
                milestone = self._milestones.get(step)
                if milestone is None:
                    raise HarnessError(
                        ErrorCode.INVALID_STAGE,
                        f"no milestone supplied for {self.kind.value} stage {step.name}",
                    )
                receipt = await milestone()
                if receipt is not None:
                    self._receipts[step] = receipt
                self.stage = step
                logger.debug(f"{self.kind.value} {self.hash} reached {step.name}")
        return self._receipts.get(stage)

    async def wait(self) -> Optional[Receipt]:
        return await self.wait_for(self.settlement_stage)

    async def wait_l1_commit(self) -> Optional[Receipt]:
        return await self.wait_for(OperationStage.L1_INCLUDED)

    async def wait_finalize(self) -> Optional[Receipt]:
        return await self.wait_for(OperationStage.FINALIZED)
