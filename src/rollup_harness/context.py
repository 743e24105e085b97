"""Explicit per-run test context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .config import HarnessConfig
from .fees import FeeReconciler
from .oracle import BalanceOracle
from .types import Account
from .verifier import OutcomeVerifier, RejectionVerifier


@dataclass
class HarnessContext:
    """Accounts, oracle and flags shared by the verifications of one run.

    ``account_factory`` comes from the provisioning collaborator and returns a
    freshly created, empty account.
    """

    main_account: Account
    oracle: BalanceOracle = field(default_factory=BalanceOracle)
    config: HarnessConfig = field(default_factory=HarnessConfig)
    account_factory: Optional[Callable[[], Account]] = None
    reconciler: FeeReconciler = field(default_factory=FeeReconciler)

    def __post_init__(self) -> None:
        self.oracle.register(self.main_account)
        self.outcomes = OutcomeVerifier(self.oracle, self.reconciler)
        self.rejections = RejectionVerifier()

    @property
    def fast_mode(self) -> bool:
        return self.config.fast_mode

    def new_empty_account(self) -> Account:
        if self.account_factory is None:
            raise RuntimeError("no account factory configured")
        return self.oracle.register(self.account_factory())
