"""In-memory two-layer ledger and wallets for exercising the harness."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any, Optional

import pytest

from rollup_harness.config import HarnessConfig
from rollup_harness.constants import (
    ACCESS_LIST_NOT_SUPPORTED,
    EIP2930_TX_TYPE,
    ETH_ADDRESS,
    INSUFFICIENT_FUNDS,
    LEGACY_TX_TYPE,
    PRIORITY_OPERATION_L2_TX_TYPE,
    TX_STATUS_SUCCESS,
)
from rollup_harness.context import HarnessContext
from rollup_harness.operations import OperationHandle, OperationKind, OperationStage
from rollup_harness.oracle import BalanceOracle
from rollup_harness.types import Account, Layer, Receipt, normalize_address

pytest_plugins = ["rollup_harness.pytest_plugin"]

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c4" * 20

L2_GAS_PRICE = 1
L1_GAS_PRICE = 2
TRANSFER_GAS = 100
L1_GAS = 150
L2_FEE = TRANSFER_GAS * L2_GAS_PRICE
L1_FEE = L1_GAS * L1_GAS_PRICE


@dataclass
class FakeLedger:
    """Balances of both layers plus the withdrawals waiting for finalization."""

    balances: dict = field(default_factory=dict)
    events: list = field(default_factory=list)
    finalizable: dict = field(default_factory=dict)
    finalized: set = field(default_factory=set)
    l2_gas_price: int = L2_GAS_PRICE
    l1_gas_price: int = L1_GAS_PRICE
    _hashes: Any = field(default_factory=lambda: itertools.count(1))

    def balance(self, layer: Layer, address: str, token: str = ETH_ADDRESS) -> int:
        return self.balances.get((layer, normalize_address(address), normalize_address(token)), 0)

    def set_balance(self, layer: Layer, address: str, amount: int, token: str = ETH_ADDRESS) -> None:
        self.balances[(layer, normalize_address(address), normalize_address(token))] = amount

    def add(self, layer: Layer, address: str, amount: int, token: str = ETH_ADDRESS) -> None:
        self.set_balance(layer, address, self.balance(layer, address, token) + amount, token)

    def next_hash(self) -> str:
        return "0x" + format(next(self._hashes), "064x")

    def wallet(self, address: str) -> "FakeWallet":
        return FakeWallet(self, normalize_address(address))

    def account(self, address: str) -> Account:
        return Account.from_wallet(self.wallet(address))


class FakeWallet:
    def __init__(self, ledger: FakeLedger, address: str):
        self.ledger = ledger
        self.address = address

    def _receipt(self, layer: Layer, tx_hash: str, tx_type: int, gas: int, price: int, to: Optional[str]) -> Receipt:
        return Receipt(
            tx_hash=tx_hash,
            type=tx_type,
            status=TX_STATUS_SUCCESS,
            from_address=self.address,
            to=to,
            gas_used=gas,
            effective_gas_price=price,
            block_number=1,
            layer=layer,
        )

    async def get_balance(self, token: str = ETH_ADDRESS) -> int:
        await asyncio.sleep(0)
        self.ledger.events.append(("balance", Layer.L2, self.address))
        return self.ledger.balance(Layer.L2, self.address, token)

    async def get_balance_l1(self, token: str = ETH_ADDRESS) -> int:
        await asyncio.sleep(0)
        self.ledger.events.append(("balance", Layer.L1, self.address))
        return self.ledger.balance(Layer.L1, self.address, token)

    async def get_gas_price(self) -> int:
        return self.ledger.l2_gas_price

    async def estimate_gas(self, to: str, value: int) -> int:
        return TRANSFER_GAS

    async def get_base_cost(self, gas_limit: int, gas_per_pubdata_byte: int, gas_price: int) -> int:
        return gas_limit * gas_price

    async def send_transaction(
        self,
        to: str,
        value: int = 0,
        type: int = LEGACY_TX_TYPE,
        gas_limit: Optional[int] = None,
        access_list: Optional[list] = None,
    ) -> OperationHandle:
        await asyncio.sleep(0)
        self.ledger.events.append(("submit", Layer.L2, self.address))
        if type == EIP2930_TX_TYPE or access_list is not None:
            raise ValueError(f"failed to validate the transaction. reason: {ACCESS_LIST_NOT_SUPPORTED}")
        price = self.ledger.l2_gas_price
        limit = gas_limit if gas_limit is not None else TRANSFER_GAS
        if self.ledger.balance(Layer.L2, self.address) < value + limit * price:
            raise ValueError(f"{INSUFFICIENT_FUNDS} Balance is too low")
        tx_hash = self.ledger.next_hash()

        async def applied() -> Receipt:
            await asyncio.sleep(0)
            self.ledger.add(Layer.L2, self.address, -(value + L2_FEE))
            self.ledger.add(Layer.L2, to, value)
            return self._receipt(Layer.L2, tx_hash, type, TRANSFER_GAS, price, to)

        return OperationHandle(OperationKind.TRANSFER, tx_hash, {OperationStage.L2_APPLIED: applied})

    async def deposit(
        self,
        token: str,
        amount: int,
        gas_per_pubdata_byte: Optional[int] = None,
        l2_gas_limit: Optional[int] = None,
        overrides: Optional[dict] = None,
    ) -> OperationHandle:
        gas_price = (overrides or {}).get("gas_price", self.ledger.l1_gas_price)
        base_cost = await self.get_base_cost(l2_gas_limit or 0, gas_per_pubdata_byte or 0, gas_price)
        tx_hash = self.ledger.next_hash()

        async def included() -> Receipt:
            self.ledger.add(Layer.L1, self.address, -(amount + L1_GAS * gas_price + base_cost))
            return self._receipt(Layer.L1, tx_hash, LEGACY_TX_TYPE, L1_GAS, gas_price, None)

        async def applied() -> Receipt:
            self.ledger.add(Layer.L2, self.address, amount, token)
            return self._receipt(
                Layer.L2, tx_hash, PRIORITY_OPERATION_L2_TX_TYPE, l2_gas_limit or 0, 0, self.address
            )

        return OperationHandle(
            OperationKind.DEPOSIT,
            tx_hash,
            {OperationStage.L1_INCLUDED: included, OperationStage.L2_APPLIED: applied},
            base_cost=base_cost,
        )

    async def withdraw(self, token: str, amount: int) -> OperationHandle:
        tx_hash = self.ledger.next_hash()

        async def applied() -> Receipt:
            self.ledger.add(Layer.L2, self.address, -(amount + L2_FEE), token)
            receipt = self._receipt(Layer.L2, tx_hash, LEGACY_TX_TYPE, TRANSFER_GAS, L2_GAS_PRICE, None)
            receipt.l2_to_l1_logs = [{"sender": self.address, "value": amount}]
            return receipt

        async def finalized() -> None:
            self.ledger.finalizable[tx_hash] = (self.address, token, amount)

        return OperationHandle(
            OperationKind.WITHDRAWAL,
            tx_hash,
            {OperationStage.L2_APPLIED: applied, OperationStage.FINALIZED: finalized},
        )

    async def finalize_withdrawal(self, tx_hash: str) -> OperationHandle:
        if tx_hash not in self.ledger.finalizable:
            raise ValueError(f"withdrawal {tx_hash} is not finalized on L2 yet")
        if tx_hash in self.ledger.finalized:
            raise ValueError(f"withdrawal {tx_hash} is already finalized")
        finalize_hash = self.ledger.next_hash()

        async def included() -> Receipt:
            receiver, token, amount = self.ledger.finalizable[tx_hash]
            self.ledger.finalized.add(tx_hash)
            self.ledger.add(Layer.L1, receiver, amount, token)
            self.ledger.add(Layer.L1, self.address, -L1_FEE)
            return self._receipt(Layer.L1, finalize_hash, LEGACY_TX_TYPE, L1_GAS, L1_GAS_PRICE, None)

        return OperationHandle(
            OperationKind.FINALIZE_WITHDRAWAL, finalize_hash, {OperationStage.L1_INCLUDED: included}
        )


@pytest.fixture
def ledger() -> FakeLedger:
    ledger = FakeLedger()
    ledger.set_balance(Layer.L2, ALICE, 500)
    ledger.set_balance(Layer.L1, ALICE, 1_000_000)
    return ledger


@pytest.fixture
def alice(ledger: FakeLedger) -> Account:
    return ledger.account(ALICE)


@pytest.fixture
def bob(ledger: FakeLedger) -> Account:
    return ledger.account(BOB)


@pytest.fixture
def ctx(ledger: FakeLedger, alice: Account, harness_config: HarnessConfig) -> HarnessContext:
    fresh = (f"0x{n:040x}" for n in itertools.count(0xE0))
    return HarnessContext(
        main_account=alice,
        oracle=BalanceOracle(),
        config=harness_config,
        account_factory=lambda: ledger.account(next(fresh)),
    )
