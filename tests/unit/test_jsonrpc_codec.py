from __future__ import annotations

import json

import pytest

from grounded_search_mcp.mcp_server.jsonrpc.codec import (
    INVALID_REQUEST,
    PARSE_ERROR,
    JsonRpcCodecError,
    decode_request,
    encode_error,
    encode_request,
    is_client_response,
)


def test_decode_request_ok() -> None:
    req = decode_request('{"jsonrpc":"2.0","id":1,"method":"tools/list","params":{"a":1}}')
    assert req.id == 1
    assert req.method == "tools/list"
    assert req.params == {"a": 1}
    assert not req.is_notification


def test_decode_request_without_id_is_notification() -> None:
    req = decode_request('{"jsonrpc":"2.0","method":"notifications/initialized"}')
    assert req.id is None
    assert req.is_notification


def test_decode_request_parse_error() -> None:
    with pytest.raises(JsonRpcCodecError) as e:
        decode_request("{not json")
    assert e.value.code == PARSE_ERROR


def test_decode_request_invalid_request() -> None:
    with pytest.raises(JsonRpcCodecError) as e:
        decode_request('{"jsonrpc":"2.0","id":7,"params":{}}')
    assert e.value.code == INVALID_REQUEST
    assert e.value.req_id == 7


def test_decode_request_rejects_wrong_version_and_batches() -> None:
    with pytest.raises(JsonRpcCodecError) as e:
        decode_request('{"jsonrpc":"1.0","id":1,"method":"ping"}')
    assert e.value.code == INVALID_REQUEST

    with pytest.raises(JsonRpcCodecError) as e:
        decode_request('[{"jsonrpc":"2.0","id":1,"method":"ping"}]')
    assert e.value.code == INVALID_REQUEST


def test_encode_error_shape() -> None:
    s = encode_error(1, -32000, "bad", {"x": 1})
    obj = json.loads(s)
    assert obj["jsonrpc"] == "2.0"
    assert obj["id"] == 1
    assert obj["error"]["code"] == -32000
    assert obj["error"]["message"] == "bad"
    assert obj["error"]["data"] == {"x": 1}


def test_encode_request_omits_missing_fields() -> None:
    assert json.loads(encode_request("ping")) == {"jsonrpc": "2.0", "method": "ping"}
    assert json.loads(encode_request("ping", req_id="p-1")) == {"jsonrpc": "2.0", "method": "ping", "id": "p-1"}


def test_is_client_response() -> None:
    assert is_client_response({"jsonrpc": "2.0", "id": "p-1", "result": {}})
    assert is_client_response({"jsonrpc": "2.0", "id": "p-1", "error": {"code": 1, "message": "x"}})
    assert not is_client_response({"jsonrpc": "2.0", "id": 1, "method": "ping"})
    assert not is_client_response([1, 2])
