"""JSON-RPC provider against a local aiohttp server."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from conftest import ALICE
from rollup_harness.errors import ErrorCode, QueryError
from rollup_harness.oracle import BalanceOracle
from rollup_harness.rpc import JsonRpcProvider
from rollup_harness.types import Account, Layer

TOKEN = "0x" + "7e" * 20


def _node(results: dict, requests: list) -> web.Application:
    async def handle(request: web.Request) -> web.Response:
        body = await request.json()
        requests.append(body)
        reply = results[body["method"]]
        if isinstance(reply, web.Response):
            return reply
        if isinstance(reply, dict) and "error" in reply:
            return web.json_response({"jsonrpc": "2.0", "id": body["id"], "error": reply["error"]})
        return web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": reply})

    app = web.Application()
    app.router.add_post("/", handle)
    return app


def _run(results: dict, body: Callable[[JsonRpcProvider], Awaitable[Any]], requests: list = None) -> Any:
    requests = [] if requests is None else requests

    async def main() -> Any:
        async with TestServer(_node(results, requests)) as server:
            async with JsonRpcProvider(str(server.make_url("/")), Layer.L2, timeout=5) as provider:
                return await body(provider)

    return asyncio.run(main())


def test_native_balance_uses_latest_block() -> None:
    requests: list = []
    balance = _run({"eth_getBalance": "0x1f4"}, lambda p: p.get_balance(ALICE), requests)

    assert balance == 500
    assert requests[0]["method"] == "eth_getBalance"
    assert requests[0]["params"] == [ALICE, "latest"]


def test_token_balance_calls_balance_of() -> None:
    requests: list = []
    balance = _run({"eth_call": "0x" + "0" * 62 + "2a"}, lambda p: p.get_balance(ALICE, TOKEN), requests)

    assert balance == 42
    call, tag = requests[0]["params"]
    assert tag == "latest"
    assert call["to"] == TOKEN
    assert call["data"] == "0x70a08231" + "0" * 24 + ALICE[2:]


def test_empty_call_result_is_zero() -> None:
    assert _run({"eth_call": "0x"}, lambda p: p.get_balance(ALICE, TOKEN)) == 0


def test_json_rpc_error_raises_query_error() -> None:
    with pytest.raises(QueryError) as excinfo:
        _run({"eth_getBalance": {"error": {"code": -32000, "message": "header not found"}}},
             lambda p: p.get_balance(ALICE))
    assert excinfo.value.code == ErrorCode.QUERY_FAILED
    assert "header not found" in excinfo.value.message


def test_http_error_raises_query_error() -> None:
    with pytest.raises(QueryError) as excinfo:
        _run({"eth_getBalance": web.Response(status=502)}, lambda p: p.get_balance(ALICE))
    assert "502" in excinfo.value.message


def test_malformed_quantity() -> None:
    with pytest.raises(QueryError) as excinfo:
        _run({"eth_getBalance": 500}, lambda p: p.get_balance(ALICE))
    assert excinfo.value.code == ErrorCode.MALFORMED_RESPONSE


def test_invalid_json_body() -> None:
    with pytest.raises(QueryError) as excinfo:
        _run({"eth_getBalance": web.Response(text="not json")}, lambda p: p.get_balance(ALICE))
    assert excinfo.value.code == ErrorCode.MALFORMED_RESPONSE


def test_unreachable_node() -> None:
    async def main() -> None:
        async with JsonRpcProvider("http://127.0.0.1:9", timeout=2) as provider:
            await provider.get_balance(ALICE)

    with pytest.raises(QueryError):
        asyncio.run(main())


def test_receipt() -> None:
    receipt = _run(
        {"eth_getTransactionReceipt": {
            "transactionHash": "0x" + "11" * 32,
            "type": "0x2",
            "status": "0x1",
            "from": ALICE,
            "gasUsed": "0x64",
            "effectiveGasPrice": "0x2",
        }},
        lambda p: p.get_transaction_receipt("0x" + "11" * 32),
    )
    assert receipt.type == 2
    assert receipt.gas_used * receipt.effective_gas_price == 200
    assert receipt.layer == Layer.L2


def test_pending_receipt_is_none() -> None:
    assert _run({"eth_getTransactionReceipt": None}, lambda p: p.get_transaction_receipt("0x01")) is None


def test_gas_price() -> None:
    assert _run({"eth_gasPrice": "0x3b9aca00"}, lambda p: p.get_gas_price()) == 1_000_000_000


def test_oracle_over_rpc() -> None:
    async def body(provider: JsonRpcProvider) -> int:
        return await BalanceOracle({Layer.L2: provider}).query(Account(ALICE), Layer.L2)

    assert _run({"eth_getBalance": "0x0"}, body) == 0
