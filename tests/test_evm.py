import json

import pytest
import responses

from chain_gateway.chain.errors import ErrorKind, RPCError
from chain_gateway.chain.evm import build_envelope, decode_hex, encode_height

RPC_URL = "https://evm.example.org"
TX_HASH = "0x" + "ab" * 32


def _rpc_response(result: object) -> dict[str, object]:
    return {"jsonrpc": "2.0", "id": 1, "result": result}


def _sent_payload(index: int = 0) -> dict[str, object]:
    return json.loads(responses.calls[index].request.body)


@pytest.mark.parametrize("height", [0, 1, 15, 16, 100, 255, 19_000_000, 2**64])
def test_height_hex_round_trip(height):
    assert decode_hex(encode_height(height)) == height


def test_encode_height_is_prefixed_hex():
    assert encode_height(100) == "0x64"
    assert encode_height(0) == "0x0"


def test_build_envelope():
    assert build_envelope("eth_blockNumber", []) == {
        "jsonrpc": "2.0",
        "method": "eth_blockNumber",
        "params": [],
        "id": 1,
    }


@responses.activate
def test_get_block_by_height(evm_adapter):
    responses.post(
        RPC_URL,
        json=_rpc_response({
            "number": "0x64",
            "hash": "0xabc",
            "parentHash": "0xdef",
            "gasLimit": "0x1c9c380",
            "gasUsed": "0x5208",
            "size": "0x10",
        }),
    )
    block = evm_adapter.get_block_by_height(100)

    assert block.height == 100
    assert block.size == 16
    assert block.hash == "0xabc"
    assert block.parent_hash == "0xdef"
    # gas fields are passed through untouched
    assert block.gas_limit == "0x1c9c380"
    assert block.gas_used == "0x5208"

    payload = _sent_payload()
    assert payload["method"] == "eth_getBlockByNumber"
    assert payload["params"] == ["0x64", False]
    assert payload["jsonrpc"] == "2.0"
    assert payload["id"] == 1


@responses.activate
def test_get_block_minimal_fields(evm_adapter):
    responses.post(
        RPC_URL,
        json=_rpc_response({"number": "0x64", "hash": "0xabc", "size": "0x10"}),
    )
    block = evm_adapter.get_block_by_height(100)
    assert block.to_dict() == {
        "height": 100,
        "hash": "0xabc",
        "parentHash": None,
        "gasLimit": None,
        "gasUsed": None,
        "size": 16,
    }


@responses.activate
def test_get_block_null_result_is_not_found(evm_adapter):
    responses.post(RPC_URL, json=_rpc_response(None))
    with pytest.raises(RPCError) as exc_info:
        evm_adapter.get_block_by_height(99_999_999)
    assert exc_info.value.kind is ErrorKind.NOT_FOUND


@responses.activate
def test_get_block_malformed_number_is_bad_gateway(evm_adapter):
    responses.post(
        RPC_URL,
        json=_rpc_response({"number": "not-hex", "hash": "0xabc", "size": "0x1"}),
    )
    with pytest.raises(RPCError, match="Invalid response") as exc_info:
        evm_adapter.get_block_by_height(1)
    assert exc_info.value.kind is ErrorKind.BAD_GATEWAY


@responses.activate
def test_get_block_missing_hash_is_bad_gateway(evm_adapter):
    responses.post(RPC_URL, json=_rpc_response({"number": "0x1", "size": "0x1"}))
    with pytest.raises(RPCError) as exc_info:
        evm_adapter.get_block_by_height(1)
    assert exc_info.value.kind is ErrorKind.BAD_GATEWAY


@responses.activate
def test_get_transaction_by_hash(evm_adapter):
    responses.post(
        RPC_URL,
        json=_rpc_response({
            "hash": TX_HASH,
            "to": "0x" + "11" * 20,
            "from": "0x" + "22" * 20,
            "value": "0xde0b6b3a7640000",
            "input": "0x",
            "maxFeePerGas": "0x3b9aca00",
            "maxPriorityFeePerGas": "0x59682f00",
            "gasPrice": "0x2540be400",
        }),
    )
    tx = evm_adapter.get_transaction_by_hash(TX_HASH)

    assert tx.hash == TX_HASH
    assert tx.from_ == "0x" + "22" * 20
    assert tx.value == "0xde0b6b3a7640000"
    assert tx.max_fee_per_gas == "0x3b9aca00"
    assert tx.max_priority_fee_per_gas == "0x59682f00"
    assert tx.gas_price == "0x2540be400"

    payload = _sent_payload()
    assert payload["method"] == "eth_getTransactionByHash"
    assert payload["params"] == [TX_HASH]


@responses.activate
def test_legacy_transaction_pricing_fields_are_null(evm_adapter):
    responses.post(
        RPC_URL,
        json=_rpc_response({
            "hash": TX_HASH,
            "to": None,
            "from": "0x" + "22" * 20,
            "value": "0x0",
            "input": "0x6080",
            "gasPrice": "0x2540be400",
        }),
    )
    data = evm_adapter.get_transaction_by_hash(TX_HASH).to_dict()
    assert data["to"] is None
    assert data["maxFeePerGas"] is None
    assert data["maxPriorityFeePerGas"] is None
    assert data["gasPrice"] == "0x2540be400"
    assert data["from"] == "0x" + "22" * 20


@responses.activate
def test_get_transaction_null_result_is_not_found(evm_adapter):
    responses.post(RPC_URL, json=_rpc_response(None))
    with pytest.raises(RPCError, match="Resource not found") as exc_info:
        evm_adapter.get_transaction_by_hash(TX_HASH)
    assert exc_info.value.kind is ErrorKind.NOT_FOUND


@responses.activate
def test_error_with_not_found_message(evm_adapter):
    responses.post(
        RPC_URL,
        json={
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": -32000, "message": "Header NOT FOUND"},
        },
    )
    with pytest.raises(RPCError, match="Header NOT FOUND") as exc_info:
        evm_adapter.get_block_by_height(5)
    assert exc_info.value.kind is ErrorKind.NOT_FOUND
    assert exc_info.value.code == -32000


@responses.activate
def test_other_rpc_error_is_bad_gateway(evm_adapter):
    responses.post(
        RPC_URL,
        json={
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": -32600, "message": "Invalid request"},
        },
    )
    with pytest.raises(RPCError) as exc_info:
        evm_adapter.get_transaction_by_hash(TX_HASH)
    err = exc_info.value
    assert err.kind is ErrorKind.BAD_GATEWAY
    assert str(err) == "RPC Error: Invalid request (code: -32600)"
    assert err.code == -32600


@responses.activate
def test_network_error_is_bad_gateway(evm_adapter):
    responses.post(RPC_URL, body=ConnectionError("Connection refused"))
    with pytest.raises(RPCError, match="Cannot connect") as exc_info:
        evm_adapter.get_block_by_height(1)
    assert exc_info.value.kind is ErrorKind.BAD_GATEWAY


@responses.activate
def test_non_object_response_is_bad_gateway(evm_adapter):
    responses.post(RPC_URL, json=["unexpected"])
    with pytest.raises(RPCError) as exc_info:
        evm_adapter.get_block_by_height(1)
    assert exc_info.value.kind is ErrorKind.BAD_GATEWAY
