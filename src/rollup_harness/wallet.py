"""Interface of the client library that signs, submits and reads balances.

The harness never implements this surface itself; wallets from the client
library (or the fakes in the test suite) are passed in through ``Account``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

from .constants import ETH_ADDRESS
from .operations import OperationHandle
from .types import Receipt

Submission = Union[Receipt, OperationHandle]


@runtime_checkable
class Wallet(Protocol):
    address: str

    async def get_balance(self, token: str = ETH_ADDRESS) -> int: ...

    async def get_balance_l1(self, token: str = ETH_ADDRESS) -> int: ...

    async def get_gas_price(self) -> int: ...

    async def send_transaction(self, **fields: Any) -> Submission: ...

    async def deposit(
        self,
        token: str,
        amount: int,
        gas_per_pubdata_byte: Optional[int] = None,
        l2_gas_limit: Optional[int] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> OperationHandle: ...

    async def withdraw(self, token: str, amount: int) -> OperationHandle: ...

    async def finalize_withdrawal(self, tx_hash: str) -> Submission: ...

    async def estimate_gas(self, to: str, value: int) -> int: ...

    async def get_base_cost(
        self, gas_limit: int, gas_per_pubdata_byte: int, gas_price: int
    ) -> int: ...
