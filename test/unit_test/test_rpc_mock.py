"""
Unit tests for SuiRpcClient against httpx.MockTransport
"""

import json

import httpx
import pytest

from sui_dex_adapter.errors import ConfigurationError, ErrorCode, RpcError
from sui_dex_adapter.infra import RpcClientConfig, SuiRpcClient, classify_rpc_error

NODE_A = "https://node-a.test"
NODE_B = "https://node-b.test"


def jsonrpc_result(request: httpx.Request, result) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def jsonrpc_error(request: httpx.Request, code: int, message: str) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(
        200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": code, "message": message}}
    )


def make_client(handler, endpoints=NODE_A) -> SuiRpcClient:
    return SuiRpcClient(
        endpoints,
        config=RpcClientConfig(timeout_seconds=5),
        transport=httpx.MockTransport(handler),
    )


# ========== call() ==========

@pytest.mark.asyncio
async def test_successful_call_sends_jsonrpc_body():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return jsonrpc_result(request, "12345")

    async with make_client(handler) as rpc:
        result = await rpc.call("sui_getLatestCheckpointSequenceNumber", [])

    assert result == "12345"
    assert seen[0]["jsonrpc"] == "2.0"
    assert seen[0]["method"] == "sui_getLatestCheckpointSequenceNumber"
    assert seen[0]["params"] == []


@pytest.mark.asyncio
async def test_jsonrpc_error_is_classified_and_not_rotated():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        return jsonrpc_error(request, -32002, "Transaction validation failed")

    async with make_client(handler, [NODE_A, NODE_B]) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.call("sui_executeTransactionBlock", [])

    error = exc_info.value
    assert error.code == ErrorCode.TX_VALIDATION_FAILED
    assert not error.recoverable
    assert error.rpc_code == -32002
    assert hosts == ["node-a.test"]


@pytest.mark.asyncio
async def test_rate_limit_falls_back_to_next_endpoint():
    def handler(request):
        if request.url.host == "node-a.test":
            return httpx.Response(429)
        return jsonrpc_result(request, {"ok": True})

    async with make_client(handler, [NODE_A, NODE_B]) as rpc:
        assert await rpc.call("sui_getObject", []) == {"ok": True}
        assert rpc.endpoint == NODE_B


@pytest.mark.asyncio
async def test_all_endpoints_down():
    calls = []

    def handler(request):
        calls.append(request.url.host)
        return httpx.Response(503)

    async with make_client(handler, [NODE_A, NODE_B]) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.call("sui_getObject", [])

    assert exc_info.value.code == ErrorCode.RPC_CONNECTION_FAILED
    assert exc_info.value.recoverable
    # One attempt per endpoint
    assert calls == ["node-a.test", "node-b.test"]


@pytest.mark.asyncio
async def test_connect_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.call("sui_getObject", [])

    assert exc_info.value.code == ErrorCode.RPC_CONNECTION_FAILED
    assert isinstance(exc_info.value.original_error, httpx.ConnectError)


@pytest.mark.asyncio
async def test_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    async with make_client(handler) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.call("sui_getObject", [])

    assert exc_info.value.code == ErrorCode.RPC_TIMEOUT


@pytest.mark.asyncio
async def test_client_error_status_is_rejected():
    def handler(request):
        return httpx.Response(400, text="bad request")

    async with make_client(handler, [NODE_A, NODE_B]) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.call("sui_getObject", [])

    assert exc_info.value.code == ErrorCode.RPC_REQUEST_REJECTED
    assert not exc_info.value.recoverable


@pytest.mark.asyncio
async def test_invalid_json():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    async with make_client(handler) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.call("sui_getObject", [])

    assert exc_info.value.code == ErrorCode.RPC_INVALID_RESPONSE


def test_empty_endpoint_rejected():
    with pytest.raises(ConfigurationError):
        SuiRpcClient([])


# ========== Typed helpers ==========

@pytest.mark.asyncio
async def test_get_coins_follows_pagination():
    pages = {
        None: {"data": [{"coinObjectId": "0x1"}], "nextCursor": "c1", "hasNextPage": True},
        "c1": {"data": [{"coinObjectId": "0x2"}], "nextCursor": None, "hasNextPage": False},
    }
    cursors = []

    def handler(request):
        params = json.loads(request.content)["params"]
        cursors.append(params[2])
        return jsonrpc_result(request, pages[params[2]])

    async with make_client(handler) as rpc:
        coins = await rpc.get_coins("0xowner", "0x2::sui::SUI")

    assert [c["coinObjectId"] for c in coins] == ["0x1", "0x2"]
    assert cursors == [None, "c1"]


@pytest.mark.asyncio
async def test_get_object_missing_returns_empty():
    def handler(request):
        return jsonrpc_result(request, {"error": {"code": "notExists"}})

    async with make_client(handler) as rpc:
        assert await rpc.get_object("0x1") == {}


@pytest.mark.asyncio
async def test_batch_transaction_request_shape():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return jsonrpc_result(request, {"txBytes": "AAAA"})

    calls = [{"moveCallRequestParams": {"function": "swap"}}]
    async with make_client(handler) as rpc:
        tx_bytes = await rpc.batch_transaction("0xme", calls, 1000)

    assert tx_bytes == "AAAA"
    assert seen[0]["method"] == "unsafe_batchTransaction"
    assert seen[0]["params"] == ["0xme", calls, None, "1000", "Commit"]


@pytest.mark.asyncio
async def test_missing_tx_bytes():
    def handler(request):
        return jsonrpc_result(request, {})

    async with make_client(handler) as rpc:
        with pytest.raises(RpcError) as exc_info:
            await rpc.pay_sui("0xme", ["0xc"], ["0xyou"], [1], 1000)

    assert exc_info.value.code == ErrorCode.RPC_INVALID_RESPONSE


# ========== Classification ==========

@pytest.mark.parametrize("error,expected", [
    ({"code": -32050, "message": "try again later"}, (ErrorCode.TX_NETWORK_CONGESTED, True)),
    ({"code": -32002, "message": "bad tx"}, (ErrorCode.TX_VALIDATION_FAILED, False)),
    ({"code": -32603, "message": "internal"}, (ErrorCode.RPC_INVALID_RESPONSE, True)),
    ({"code": -32602, "message": "invalid params"}, (ErrorCode.RPC_REQUEST_REJECTED, False)),
    ({"code": -32002, "message": "ObjectLockConflict on 0x1"}, (ErrorCode.TX_OBJECT_LOCKED, True)),
    ({"code": -32002, "message": "InsufficientGas"}, (ErrorCode.TX_GAS_ESTIMATION_FAILED, True)),
    ({"code": -32002, "message": "InsufficientCoinBalance"}, (ErrorCode.TX_INSUFFICIENT_FUNDS, False)),
])
def test_classify_rpc_error(error, expected):
    assert classify_rpc_error(error) == expected
