"""Core value types for balance and receipt verification."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Iterator, List, Mapping, Optional

from .constants import ETH_ADDRESS
from .errors import AssertionMismatch, ErrorCode, RejectionMismatch

if TYPE_CHECKING:
    from .wallet import Wallet


class Layer(Enum):
    L1 = "l1"
    L2 = "l2"

    BASE_LAYER = "l1"
    ROLLUP_LAYER = "l2"


def normalize_address(address: str) -> str:
    return address.lower()


def is_native_token(token: str) -> bool:
    return normalize_address(token) == ETH_ADDRESS


@dataclass(frozen=True)
class Account:
    """An address plus the wallet able to sign for it.

    Identity is the address: two accounts wrapping different wallet objects for
    the same address are the same account.
    """

    address: str
    wallet: Optional[Wallet] = field(default=None, compare=False, repr=False)

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "Account":
        return cls(address=normalize_address(wallet.address), wallet=wallet)

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))


@dataclass(frozen=True)
class BalanceKey:
    address: str
    layer: Layer
    token: str = ETH_ADDRESS

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))
        object.__setattr__(self, "token", normalize_address(self.token))

    def __str__(self) -> str:
        token = "ETH" if is_native_token(self.token) else self.token
        return f"{self.address}@{self.layer.name}[{token}]"


class BalanceSnapshot(Mapping[BalanceKey, int]):
    """Balances captured at one logical instant. Immutable once taken."""

    def __init__(self, balances: Mapping[BalanceKey, int]):
        self._balances = MappingProxyType(dict(balances))

    def __getitem__(self, key: BalanceKey) -> int:
        return self._balances[key]

    def __iter__(self) -> Iterator[BalanceKey]:
        return iter(self._balances)

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self._balances.items())
        return f"BalanceSnapshot({inner})"

    def diff(self, before: "BalanceSnapshot") -> dict[BalanceKey, int]:
        """Per-key ``self - before`` for the keys of ``before``."""
        return {key: self[key] - value for key, value in before.items()}


def _hex_or_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith(("0x", "0X")) else int(value)
    raise TypeError(f"cannot read integer from {value!r}")


@dataclass
class Receipt:
    """Finalized transaction receipt as exposed by either layer.

    Every field is optional: a node that omits a field produces ``None`` and
    receipt predicates treat that as a failed check.
    """

    tx_hash: Optional[str] = None
    type: Optional[int] = None
    status: Optional[int] = None
    from_address: Optional[str] = None
    to: Optional[str] = None
    gas_used: Optional[int] = None
    effective_gas_price: Optional[int] = None
    block_number: Optional[int] = None
    l1_batch_number: Optional[int] = None
    l2_to_l1_logs: List[dict] = field(default_factory=list)
    layer: Optional[Layer] = None

    @classmethod
    def from_rpc(cls, data: Mapping[str, Any], layer: Optional[Layer] = None) -> "Receipt":
        """Build a receipt from a JSON-RPC ``eth_getTransactionReceipt`` result."""
        sender = data.get("from")
        return cls(
            tx_hash=data.get("transactionHash"),
            type=_hex_or_int(data.get("type")),
            status=_hex_or_int(data.get("status")),
            from_address=normalize_address(sender) if sender else None,
            to=data.get("to"),
            gas_used=_hex_or_int(data.get("gasUsed")),
            effective_gas_price=_hex_or_int(data.get("effectiveGasPrice")),
            block_number=_hex_or_int(data.get("blockNumber")),
            l1_batch_number=_hex_or_int(data.get("l1BatchNumber")),
            l2_to_l1_logs=list(data.get("l2ToL1Logs") or []),
            layer=layer,
        )

    def paid_by(self, address: str) -> bool:
        return self.from_address is not None and normalize_address(
            self.from_address
        ) == normalize_address(address)


class ViolationKind(Enum):
    BALANCE = "balance"
    RECEIPT = "receipt"
    REJECTION = "rejection"


@dataclass(frozen=True)
class Violation:
    kind: ViolationKind
    message: str
    key: Optional[BalanceKey] = None
    expected: Any = None
    actual: Any = None

    def __str__(self) -> str:
        if self.kind == ViolationKind.BALANCE:
            return f"{self.key}: expected change {self.expected}, got {self.actual}"
        return self.message


class VerdictStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Verdict:
    status: VerdictStatus
    violations: List[Violation] = field(default_factory=list)
    receipt: Optional[Receipt] = None
    handle: Any = None
    reason: Optional[str] = None

    @classmethod
    def from_violations(
        cls, violations: List[Violation], receipt: Optional[Receipt] = None, handle: Any = None
    ) -> "Verdict":
        status = VerdictStatus.FAILED if violations else VerdictStatus.PASSED
        return cls(status=status, violations=list(violations), receipt=receipt, handle=handle)

    @classmethod
    def skipped(cls, reason: str) -> "Verdict":
        return cls(status=VerdictStatus.SKIPPED, reason=reason)

    @property
    def passed(self) -> bool:
        return self.status == VerdictStatus.PASSED

    @property
    def failed(self) -> bool:
        return self.status == VerdictStatus.FAILED

    def describe(self) -> str:
        if not self.failed:
            return self.status.value
        lines = [f"{len(self.violations)} expectation(s) violated:"]
        lines.extend(f"  - {v}" for v in self.violations)
        return "\n".join(lines)

    def raise_for_failure(self) -> None:
        """Raise the mismatch error matching the violations, if any."""
        if not self.failed:
            return
        if all(v.kind == ViolationKind.REJECTION for v in self.violations):
            raise RejectionMismatch(ErrorCode.REJECTION_MISMATCH, self.describe())
        raise AssertionMismatch(ErrorCode.ASSERTION_MISMATCH, self.describe())
