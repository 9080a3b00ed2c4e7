from __future__ import annotations

import json
from typing import Any

from .models import JSONRPC_VERSION, JsonRpcRequest, JsonRpcResponse


# JSON-RPC 2.0 standard error codes.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class JsonRpcCodecError(ValueError):
    def __init__(self, code: int, message: str, *, req_id: Any | None = None, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.req_id = req_id
        self.data = data


def parse_message(raw: str | bytes) -> Any:
    try:
        return json.loads(raw)
    except Exception as e:
        raise JsonRpcCodecError(PARSE_ERROR, "parse error", data=str(e)) from e


def is_client_response(obj: Any) -> bool:
    """True for a response sent by the client (e.g. a reply to a server ping)."""
    return isinstance(obj, dict) and "method" not in obj and ("result" in obj or "error" in obj)


def request_from_obj(raw: Any) -> JsonRpcRequest:
    if not isinstance(raw, dict):
        raise JsonRpcCodecError(INVALID_REQUEST, "invalid request: root must be object")

    jsonrpc = raw.get("jsonrpc")
    if jsonrpc != JSONRPC_VERSION:
        raise JsonRpcCodecError(INVALID_REQUEST, "invalid request: jsonrpc must be '2.0'", req_id=raw.get("id"))

    method = raw.get("method")
    if not isinstance(method, str) or not method:
        raise JsonRpcCodecError(INVALID_REQUEST, "invalid request: method must be non-empty string", req_id=raw.get("id"))

    params = raw.get("params") if "params" in raw else None
    req_id = raw.get("id") if "id" in raw else None
    return JsonRpcRequest(method=method, params=params, id=req_id)


def decode_request(line: str | bytes) -> JsonRpcRequest:
    """
    Decode one JSON-RPC request from a single JSON document (one stdio line or one HTTP body).
    """
    return request_from_obj(parse_message(line))


def encode_response(resp: JsonRpcResponse) -> str:
    return json.dumps(resp.to_dict(), ensure_ascii=False, separators=(",", ":"))


def encode_error(req_id: Any | None, code: int, message: str, data: Any | None = None) -> str:
    return encode_response(JsonRpcResponse.fail(req_id, code, message, data))


def encode_request(method: str, params: Any | None = None, req_id: Any | None = None) -> str:
    d: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if req_id is not None:
        d["id"] = req_id
    if params is not None:
        d["params"] = params
    return json.dumps(d, ensure_ascii=False, separators=(",", ":"))
