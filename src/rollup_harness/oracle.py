"""Balance reads against either layer."""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Protocol

from .constants import ETH_ADDRESS
from .errors import ErrorCode, HarnessError, QueryError, query_error
from .types import Account, BalanceKey, BalanceSnapshot, Layer

logger = logging.getLogger(__name__)


class BalanceProvider(Protocol):
    async def get_balance(self, address: str, token: str = ETH_ADDRESS) -> int: ...


class WalletBalanceProvider:
    """Reads balances through the account's own wallet."""

    def __init__(self, layer: Layer, accounts: Mapping[str, Account]):
        self.layer = layer
        self._accounts = accounts

    async def get_balance(self, address: str, token: str = ETH_ADDRESS) -> int:
        account = self._accounts.get(address)
        if account is None or account.wallet is None:
            raise query_error(f"no wallet registered for {address}")
        if self.layer == Layer.L1:
            return await account.wallet.get_balance_l1(token)
        return await account.wallet.get_balance(token)


class BalanceOracle:
    """Reads confirmed balances of accounts on a named layer.

    Providers can be set per layer; any layer without one falls back to the
    wallet of the queried account. The oracle holds no mutable state besides the
    account registry, so one instance is shared by concurrent verifications.
    """

    def __init__(self, providers: Optional[Mapping[Layer, BalanceProvider]] = None):
        self._providers = dict(providers or {})
        self._accounts: dict[str, Account] = {}

    def register(self, account: Account) -> Account:
        if account.wallet is not None:
            self._accounts[account.address] = account
        return account

    def _provider(self, layer: Layer) -> BalanceProvider:
        provider = self._providers.get(layer)
        if provider is None:
            return WalletBalanceProvider(layer, self._accounts)
        return provider

    async def query(self, account: Account, layer: Layer, token: str = ETH_ADDRESS) -> int:
        self.register(account)
        return await self._read(BalanceKey(account.address, layer, token))

    async def _read(self, key: BalanceKey) -> int:
        provider = self._provider(key.layer)
        try:
            value = await provider.get_balance(key.address, key.token)
        except HarnessError:
            raise
        except Exception as exc:
            raise query_error(f"balance query for {key} failed: {exc}") from exc

        # bool is an int subclass but never a valid balance
        if isinstance(value, bool) or not isinstance(value, int):
            raise QueryError(
                ErrorCode.MALFORMED_RESPONSE,
                f"balance query for {key} returned {value!r}",
            )
        if value < 0:
            raise QueryError(
                ErrorCode.NEGATIVE_BALANCE, f"balance query for {key} returned {value}"
            )
        return value

    async def snapshot(self, keys: Iterable[BalanceKey]) -> BalanceSnapshot:
        """Query every key in order and freeze the result."""
        balances = {}
        for key in keys:
            if key not in balances:
                balances[key] = await self._read(key)
        snapshot = BalanceSnapshot(balances)
        logger.debug(f"snapshot: {snapshot!r}")
        return snapshot
