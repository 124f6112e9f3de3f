"""
SolanaRpcGateway against httpx.MockTransport: request shape, model parsing
and mapping of transport/HTTP/RPC errors to TransientRemoteError.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from backend_walletscope.core.exceptions import TransientRemoteError
from backend_walletscope.solana_rpc.gateway import RpcGateway, SolanaRpcGateway
from fakes import MINT_A, NOW, VALID_WALLET, VALID_WALLET_2

VALID_SIG = "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"

RPC_TX_RESULT = {
    "slot": 250_000_000,
    "blockTime": NOW,
    "meta": {
        "err": None,
        "fee": 5000,
        "preBalances": [5_000_000_000, 1_000_000, 1],
        "postBalances": [3_499_995_000, 1_000_000, 1],
        "preTokenBalances": [
            {
                "accountIndex": 1,
                "mint": MINT_A,
                "owner": VALID_WALLET,
                "uiTokenAmount": {"amount": "2500000", "decimals": 6, "uiAmount": 2.5},
            }
        ],
        "postTokenBalances": [
            {
                "accountIndex": 1,
                "mint": MINT_A,
                "owner": VALID_WALLET,
                "uiTokenAmount": {"amount": "0", "decimals": 6, "uiAmount": None},
            },
            {
                "accountIndex": 2,
                "mint": MINT_A,
                "owner": VALID_WALLET_2,
                "uiTokenAmount": {"amount": "2500000", "decimals": 6, "uiAmount": 2.5},
            },
        ],
    },
    "transaction": {"signatures": [VALID_SIG], "message": {"accountKeys": []}},
}


def _gateway(handler) -> SolanaRpcGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SolanaRpcGateway("http://rpc.test", client=client)


def _rpc_result(request: httpx.Request, result) -> httpx.Response:
    body = json.loads(request.content)
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})


def test_list_signatures_sends_cursor_and_limit_and_parses_refs():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return _rpc_result(
            request,
            [
                {"signature": "s1", "slot": 10, "blockTime": NOW, "err": None},
                {"signature": "s2", "slot": 9, "blockTime": None, "err": {"InstructionError": [0, "Custom"]}},
                {"slot": 8},
            ],
        )

    gateway = _gateway(handler)
    refs = asyncio.run(gateway.list_signatures(VALID_WALLET, before="s0", limit=20))

    assert seen[0]["method"] == "getSignaturesForAddress"
    assert seen[0]["params"][0] == VALID_WALLET
    assert seen[0]["params"][1]["limit"] == 20
    assert seen[0]["params"][1]["before"] == "s0"
    assert [r.signature for r in refs] == ["s1", "s2"]
    assert refs[0].block_time == NOW
    assert refs[1].block_time is None
    assert refs[1].err is not None


def test_list_signatures_first_page_omits_before():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return _rpc_result(request, [])

    assert asyncio.run(_gateway(handler).list_signatures(VALID_WALLET)) == []
    assert "before" not in seen[0]["params"][1]
    assert seen[0]["params"][1]["limit"] == 1000


def test_get_transaction_parses_balances_and_token_balances():
    def handler(request):
        body = json.loads(request.content)
        assert body["method"] == "getTransaction"
        assert body["params"][1]["maxSupportedTransactionVersion"] == 0
        return _rpc_result(request, RPC_TX_RESULT)

    tx = asyncio.run(_gateway(handler).get_transaction(VALID_SIG))

    assert tx is not None
    assert tx.signature == VALID_SIG
    assert tx.block_time == NOW
    assert tx.succeeded is True
    assert tx.delta_for(0) == -1_500_005_000
    assert tx.delta_for(7) == 0
    assert len(tx.token_balances) == 3
    assert tx.token_balances[0].amount == 2_500_000
    assert tx.mints_owned_by(VALID_WALLET) == [MINT_A]


def test_get_transaction_failed_tx_is_not_succeeded():
    result = dict(RPC_TX_RESULT, meta=dict(RPC_TX_RESULT["meta"], err={"InstructionError": [1, "Custom"]}))

    tx = asyncio.run(_gateway(lambda r: _rpc_result(r, result)).get_transaction(VALID_SIG))

    assert tx.succeeded is False


@pytest.mark.parametrize("result", [None, {"blockTime": NOW, "transaction": {}}])
def test_get_transaction_absent_body_returns_none(result):
    assert asyncio.run(_gateway(lambda r: _rpc_result(r, result)).get_transaction(VALID_SIG)) is None


@pytest.mark.parametrize("result", [{"unexpected": "shape"}, "garbage", 42])
def test_list_signatures_non_list_result_raises_transient_error(result):
    """Only an empty list means end of history; any other shape is a remote failure."""
    gateway = _gateway(lambda r: _rpc_result(r, result))

    with pytest.raises(TransientRemoteError) as exc_info:
        asyncio.run(gateway.list_signatures(VALID_WALLET))
    assert exc_info.value.method == "getSignaturesForAddress"


@pytest.mark.parametrize(
    "result",
    [
        {"blockTime": "garbage", "meta": {"err": None}},
        {"blockTime": NOW, "meta": {"err": None, "preBalances": ["x"], "postBalances": [1]}},
        {"blockTime": NOW, "meta": {"err": None, "postTokenBalances": [{"accountIndex": "one"}]}},
    ],
)
def test_get_transaction_malformed_body_raises_transient_error(result):
    gateway = _gateway(lambda r: _rpc_result(r, result))

    with pytest.raises(TransientRemoteError) as exc_info:
        asyncio.run(gateway.get_transaction(VALID_SIG))
    assert exc_info.value.method == "getTransaction"
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_malformed_signature_page_is_retried_then_fails():
    from backend_walletscope.config.settings import RetrievalConfig
    from backend_walletscope.core.exceptions import RemoteFailure
    from backend_walletscope.ingestion.pagination import CountBound, open_stream
    from fakes import RecordingSleep

    calls = []

    def handler(request):
        calls.append(request)
        return _rpc_result(request, {"unexpected": "shape"})

    retrieval = RetrievalConfig(page_size=20, batch_delay_sec=0.0)
    stream = open_stream(_gateway(handler), VALID_WALLET, CountBound(5), retrieval, sleep=RecordingSleep())

    async def _drain():
        return [tx async for tx in stream]

    with pytest.raises(RemoteFailure):
        asyncio.run(_drain())
    assert len(calls) == 3


def test_http_error_status_raises_transient_error_with_code():
    gateway = _gateway(lambda r: httpx.Response(429, text="Too Many Requests"))

    with pytest.raises(TransientRemoteError) as exc_info:
        asyncio.run(gateway.list_signatures(VALID_WALLET))
    assert exc_info.value.code == 429
    assert exc_info.value.method == "getSignaturesForAddress"


def test_rpc_error_payload_raises_transient_error():
    def handler(request):
        return httpx.Response(
            200,
            json={"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "Node is behind"}},
        )

    with pytest.raises(TransientRemoteError, match="Node is behind"):
        asyncio.run(_gateway(handler).get_transaction(VALID_SIG))


def test_transport_error_raises_transient_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(TransientRemoteError):
        asyncio.run(_gateway(handler).list_signatures(VALID_WALLET))


def test_invalid_json_raises_transient_error():
    gateway = _gateway(lambda r: httpx.Response(200, text="<html>bad gateway</html>"))

    with pytest.raises(TransientRemoteError):
        asyncio.run(gateway.list_signatures(VALID_WALLET))


def test_gateway_satisfies_protocol_and_rejects_empty_url():
    assert isinstance(_gateway(lambda r: _rpc_result(r, [])), RpcGateway)
    with pytest.raises(ValueError):
        SolanaRpcGateway("  ")


def test_gateway_context_manager_closes_owned_client():
    async def _run():
        async with SolanaRpcGateway("http://rpc.test") as gateway:
            client = gateway._client
        return client

    client = asyncio.run(_run())
    assert client.is_closed
