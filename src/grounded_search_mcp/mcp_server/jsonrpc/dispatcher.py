from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

from .codec import INTERNAL_ERROR, INVALID_REQUEST, METHOD_NOT_FOUND
from .models import JSONRPC_VERSION, JsonRpcError, JsonRpcRequest, JsonRpcResponse


Handler = Callable[[JsonRpcRequest], Any]
ErrorObserver = Callable[[JsonRpcRequest, Exception], None]


class JsonRpcAppError(Exception):
    """Raised intentionally by handlers to answer with a specific JSON-RPC error."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class MethodNotFoundError(LookupError):
    pass


@dataclass
class Dispatcher:
    """JSON-RPC method dispatcher (thin routing layer); handlers may be sync or async."""

    _handlers: dict[str, Handler] = field(default_factory=dict)
    error_mapper: Callable[[Exception], JsonRpcError] | None = None
    on_error: ErrorObserver | None = None

    def register(self, method: str, handler: Handler) -> None:
        if not isinstance(method, str) or not method:
            raise ValueError("method must be non-empty string")
        if not callable(handler):
            raise TypeError("handler must be callable")
        self._handlers[method] = handler

    def methods(self) -> list[str]:
        return sorted(self._handlers)

    async def handle(self, req: JsonRpcRequest) -> JsonRpcResponse:
        if req.jsonrpc != JSONRPC_VERSION or not req.method:
            return JsonRpcResponse.fail(req.id, INVALID_REQUEST, "invalid request")

        handler = self._handlers.get(req.method)
        if handler is None:
            self._observe(req, MethodNotFoundError(f"method not found: {req.method}"))
            return JsonRpcResponse.fail(req.id, METHOD_NOT_FOUND, "method not found")

        try:
            result = handler(req)
            if inspect.isawaitable(result):
                result = await result
            return JsonRpcResponse.ok(req.id, result)
        except Exception as e:
            self._observe(req, e)
            mapper = self.error_mapper or default_error_mapper
            return JsonRpcResponse(id=req.id, error=mapper(e))

    def _observe(self, req: JsonRpcRequest, exc: Exception) -> None:
        if self.on_error is not None:
            self.on_error(req, exc)


def default_error_mapper(exc: Exception) -> JsonRpcError:
    return JsonRpcError(code=INTERNAL_ERROR, message="internal error", data={"exc_type": type(exc).__name__})
