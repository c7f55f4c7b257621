import json

import httpx
import pytest

from heliosexec.errors import RpcError
from heliosexec.http_rpc import HttpRpc
from heliosexec.types import BlockTag, CallOpts, Filter
from heliosexec.utils import to_hex

URL = "http://localhost:8545"
ADDRESS = bytes(range(1, 21))


def make_rpc(results, calls=None, statuses=None):
    """Build an HttpRpc whose transport answers by JSON-RPC method name."""
    calls = calls if calls is not None else []
    statuses = list(statuses or [])

    def handler(request):
        body = json.loads(request.content)
        calls.append(body)
        if statuses:
            status = statuses.pop(0)
            if status != 200:
                return httpx.Response(status)
        method = body["method"]
        if method not in results:
            return httpx.Response(
                200,
                json={"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": "nope"}},
            )
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": results[method]})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpRpc(URL, client), calls


@pytest.mark.asyncio
async def test_chain_id_parses_quantity():
    rpc, _ = make_rpc({"eth_chainId": "0x5"})
    assert await rpc.chain_id() == 5


@pytest.mark.asyncio
async def test_get_code_sends_address_and_block():
    rpc, calls = make_rpc({"eth_getCode": "0x6001"})
    code = await rpc.get_code(ADDRESS, 42)
    assert code == bytes.fromhex("6001")
    assert calls[0]["params"] == [to_hex(ADDRESS), hex(42)]


@pytest.mark.asyncio
async def test_missing_receipt_is_none():
    rpc, _ = make_rpc({"eth_getTransactionReceipt": None})
    assert await rpc.get_transaction_receipt(bytes(32)) is None


@pytest.mark.asyncio
async def test_uninstall_filter_returns_bool():
    rpc, calls = make_rpc({"eth_uninstallFilter": True})
    assert await rpc.uninstall_filter(7) is True
    assert calls[0]["params"] == [hex(7)]


@pytest.mark.asyncio
async def test_new_filter_sends_filter_json():
    rpc, calls = make_rpc({"eth_newFilter": "0x1f"})
    flt = Filter(from_block=BlockTag.number_of(3), to_block=BlockTag.latest())
    assert await rpc.get_new_filter(flt) == 0x1F
    assert calls[0]["params"] == [flt.to_json()]


@pytest.mark.asyncio
async def test_create_access_list_defaults_and_parsing():
    key = to_hex(bytes(31) + b"\x01")
    rpc, calls = make_rpc(
        {
            "eth_createAccessList": {
                "accessList": [{"address": to_hex(ADDRESS), "storageKeys": [key]}],
                "gasUsed": "0x10",
            }
        }
    )
    items = await rpc.create_access_list(CallOpts(to=ADDRESS), BlockTag.latest())
    assert len(items) == 1
    assert items[0].address == ADDRESS
    assert items[0].storage_keys == [bytes(31) + b"\x01"]
    tx, block = calls[0]["params"]
    assert tx["gas"] == hex(100_000_000)
    assert block == BlockTag.latest().to_rpc()


@pytest.mark.asyncio
async def test_json_rpc_error_becomes_rpc_error():
    rpc, _ = make_rpc({})
    with pytest.raises(RpcError) as info:
        await rpc.chain_id()
    assert info.value.method == "chain_id"


@pytest.mark.asyncio
async def test_pending_filter_error_label():
    rpc, _ = make_rpc({})
    with pytest.raises(RpcError) as info:
        await rpc.get_new_pending_transaction_filter()
    assert info.value.method == "get_new_pending_transactions"


@pytest.mark.asyncio
async def test_http_error_status_raises():
    rpc, _ = make_rpc({"eth_chainId": "0x1"}, statuses=[500])
    with pytest.raises(RpcError):
        await rpc.chain_id()


@pytest.mark.asyncio
async def test_rate_limited_request_is_retried():
    rpc, calls = make_rpc({"eth_chainId": "0x1"}, statuses=[429, 200])
    assert await rpc.chain_id() == 1
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_send_raw_transaction_round_trip():
    tx_hash = bytes([0xAB]) * 32
    rpc, calls = make_rpc({"eth_sendRawTransaction": to_hex(tx_hash)})
    assert await rpc.send_raw_transaction(b"\x02\x03") == tx_hash
    assert calls[0]["params"] == [to_hex(b"\x02\x03")]


@pytest.mark.asyncio
async def test_fee_history_parsed():
    rpc, calls = make_rpc(
        {
            "eth_feeHistory": {
                "oldestBlock": "0x10",
                "baseFeePerGas": ["0x1", "0x2"],
                "gasUsedRatio": [0.5],
                "reward": [["0x3"]],
            }
        }
    )
    history = await rpc.get_fee_history(1, 16, [25.0])
    assert history.oldest_block == 0x10
    assert history.base_fee_per_gas == [1, 2]
    assert history.reward == [[3]]
    assert calls[0]["params"][2] == [25.0]


@pytest.mark.asyncio
async def test_get_proof_parsed():
    rpc, calls = make_rpc(
        {
            "eth_getProof": {
                "address": to_hex(ADDRESS),
                "balance": "0x2a",
                "codeHash": to_hex(bytes(32)),
                "nonce": "0x3",
                "storageHash": to_hex(bytes(32)),
                "accountProof": ["0xc0"],
                "storageProof": [],
            }
        }
    )
    proof = await rpc.get_proof(ADDRESS, [], 9)
    assert proof.balance == 0x2A
    assert proof.nonce == 3
    assert proof.account_proof == [b"\xc0"]
    assert calls[0]["params"] == [to_hex(ADDRESS), [], hex(9)]


def test_invalid_url_rejected():
    with pytest.raises(ValueError):
        HttpRpc("not a url")


@pytest.mark.asyncio
async def test_aclose_leaves_external_client_open():
    rpc, _ = make_rpc({})
    await rpc.aclose()
    assert rpc._client.is_closed is False