"""Declarative balance-change expectations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence, Tuple, Union

from .constants import ETH_ADDRESS
from .types import Account, BalanceKey, Layer, is_native_token

Change = Tuple[Account, int]


@dataclass(frozen=True)
class ExpectedDelta:
    """Signed balance change expected for one account on one layer.

    With ``exclude_fee`` the declared ``amount`` is the intended transfer value:
    the native-token fee the account paid for the operation is added back to the
    observed change before comparing.
    """

    account: Account
    layer: Layer
    token: str
    amount: int
    exclude_fee: bool = False

    def __post_init__(self) -> None:
        if self.exclude_fee and not is_native_token(self.token):
            raise ValueError("fee exclusion only applies to the native token")

    @property
    def key(self) -> BalanceKey:
        return BalanceKey(self.account.address, self.layer, self.token)


@dataclass(frozen=True)
class BalanceChangeExpectation:
    """An ordered group of deltas declared together."""

    deltas: Tuple[ExpectedDelta, ...]

    def __iter__(self) -> Iterator[ExpectedDelta]:
        return iter(self.deltas)

    def __len__(self) -> int:
        return len(self.deltas)

    def keys(self) -> List[BalanceKey]:
        seen: List[BalanceKey] = []
        for delta in self.deltas:
            if delta.key not in seen:
                seen.append(delta.key)
        return seen


def _layer(l1: bool) -> Layer:
    return Layer.L1 if l1 else Layer.L2


def should_change_eth_balances(
    changes: Iterable[Change],
    l1: bool = False,
    exclude_fee: bool = True,
) -> BalanceChangeExpectation:
    """Expect native-token changes; fees paid by a change's account are ignored.

    Pass ``exclude_fee=False`` to declare exact deltas fee included.
    """
    layer = _layer(l1)
    return BalanceChangeExpectation(tuple(
        ExpectedDelta(account, layer, ETH_ADDRESS, amount, exclude_fee)
        for account, amount in changes
    ))


def should_change_token_balances(
    token: str,
    changes: Iterable[Change],
    l1: bool = False,
) -> BalanceChangeExpectation:
    layer = _layer(l1)
    exclude_fee = is_native_token(token)
    return BalanceChangeExpectation(tuple(
        ExpectedDelta(account, layer, token, amount, exclude_fee)
        for account, amount in changes
    ))


def should_only_take_fee(account: Account, l1: bool = False) -> BalanceChangeExpectation:
    """The account's balance changes by exactly the fee it paid and nothing else."""
    return BalanceChangeExpectation(
        (ExpectedDelta(account, _layer(l1), ETH_ADDRESS, 0, exclude_fee=True),)
    )


def flatten(
    expectations: Sequence[Union[ExpectedDelta, BalanceChangeExpectation]],
) -> List[ExpectedDelta]:
    deltas: List[ExpectedDelta] = []
    for item in expectations:
        if isinstance(item, ExpectedDelta):
            deltas.append(item)
        else:
            deltas.extend(item)
    return deltas
