from __future__ import annotations

from dataclasses import dataclass
from typing import Any


JSONRPC_VERSION = "2.0"

JsonDict = dict[str, Any]


@dataclass(frozen=True)
class JsonRpcRequest:
    method: str
    params: Any | None = None
    id: Any | None = None  # string | number; None marks a notification
    jsonrpc: str = JSONRPC_VERSION

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def params_dict(self) -> JsonDict:
        """`params` when it is an object, else an empty dict."""
        return self.params if isinstance(self.params, dict) else {}


@dataclass(frozen=True)
class JsonRpcError:
    code: int
    message: str
    data: Any | None = None

    def to_dict(self) -> JsonDict:
        out: JsonDict = {"code": self.code, "message": self.message}
        if self.data is not None:
            out["data"] = self.data
        return out


@dataclass(frozen=True)
class JsonRpcResponse:
    id: Any | None = None
    result: Any | None = None
    error: JsonRpcError | None = None
    jsonrpc: str = JSONRPC_VERSION

    @classmethod
    def ok(cls, req_id: Any | None, result: Any) -> "JsonRpcResponse":
        return cls(id=req_id, result=result)

    @classmethod
    def fail(cls, req_id: Any | None, code: int, message: str, data: Any | None = None) -> "JsonRpcResponse":
        return cls(id=req_id, error=JsonRpcError(code=code, message=message, data=data))

    def to_dict(self) -> JsonDict:
        out: JsonDict = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is None:
            out["result"] = self.result
        else:
            out["error"] = self.error.to_dict()
        return out
