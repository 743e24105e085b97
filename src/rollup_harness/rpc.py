"""JSON-RPC balance and receipt reads over HTTP."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, List, Optional

import aiohttp

from .constants import BALANCE_OF_SELECTOR, ETH_ADDRESS
from .errors import ErrorCode, QueryError, query_error
from .types import Layer, Receipt, is_native_token, normalize_address

logger = logging.getLogger(__name__)

# Confirmed state only; "pending" would expose mempool effects.
BLOCK_TAG = "latest"


def _parse_quantity(value: Any, what: str) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"{what}: not a hex quantity: {value!r}")
    try:
        # "0x" alone is how some nodes encode an empty eth_call result
        return int(value, 16) if len(value) > 2 else 0
    except ValueError as exc:
        raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"{what}: {exc}") from exc


def _encode_address_arg(address: str) -> str:
    return normalize_address(address)[2:].rjust(64, "0")


class JsonRpcProvider:
    """HTTP JSON-RPC client for one layer's node."""

    def __init__(self, endpoint: str, layer: Layer = Layer.L2, timeout: float = 30.0):
        self.endpoint = endpoint
        self.layer = layer
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Initialize HTTP session."""
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            self.session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> "JsonRpcProvider":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def call(self, method: str, params: List[Any]) -> Any:
        await self.connect()
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with self.session.post(self.endpoint, json=payload) as resp:
                if resp.status != 200:
                    raise query_error(f"{method}: HTTP {resp.status} from {self.endpoint}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.error(f"[{self.layer.name}] {method} failed: {exc}")
            raise query_error(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"{method}: invalid JSON") from exc

        if not isinstance(data, dict):
            raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"{method}: unexpected response {data!r}")
        if "error" in data and data["error"] is not None:
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise query_error(f"{method}: {message}")
        if "result" not in data:
            raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"{method}: response has no result")
        return data["result"]

    async def get_balance(self, address: str, token: str = ETH_ADDRESS) -> int:
        if is_native_token(token):
            result = await self.call("eth_getBalance", [address, BLOCK_TAG])
            return _parse_quantity(result, "eth_getBalance")
        call = {"to": token, "data": BALANCE_OF_SELECTOR + _encode_address_arg(address)}
        result = await self.call("eth_call", [call, BLOCK_TAG])
        return _parse_quantity(result, "balanceOf")

    async def get_gas_price(self) -> int:
        return _parse_quantity(await self.call("eth_gasPrice", []), "eth_gasPrice")

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """Receipt of ``tx_hash``, or None while it is not yet included."""
        result = await self.call("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"receipt {tx_hash}: {result!r}")
        try:
            return Receipt.from_rpc(result, layer=self.layer)
        except (TypeError, ValueError) as exc:
            raise QueryError(ErrorCode.MALFORMED_RESPONSE, f"receipt {tx_hash}: {exc}") from exc
