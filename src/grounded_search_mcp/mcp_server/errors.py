from __future__ import annotations

import asyncio
from typing import Any

from .jsonrpc.codec import INTERNAL_ERROR, INVALID_PARAMS
from .jsonrpc.dispatcher import JsonRpcAppError
from .jsonrpc.models import JsonRpcError


# Server-defined code from the reserved -32000..-32099 range.
DEADLINE_EXCEEDED = -32001

# (exception types, code, client-facing message); first match wins.
_BUCKETS: tuple[tuple[tuple[type[BaseException], ...], int, str], ...] = (
    ((TypeError, ValueError), INVALID_PARAMS, "invalid params"),
    ((TimeoutError, asyncio.TimeoutError), DEADLINE_EXCEEDED, "deadline exceeded"),
)


def map_exception_to_jsonrpc(exc: Exception) -> JsonRpcError:
    """Map a handler exception to the JSON-RPC error sent to the client.

    `JsonRpcAppError` passes through unchanged. Anything else is bucketed by
    type; only the exception class name reaches the client, details stay in
    the logs.
    """
    if isinstance(exc, JsonRpcAppError):
        return JsonRpcError(code=exc.code, message=exc.message, data=exc.data)

    for types_, code, message in _BUCKETS:
        if isinstance(exc, types_):
            return JsonRpcError(code=code, message=message, data={"exc_type": type(exc).__name__})
    return JsonRpcError(code=INTERNAL_ERROR, message="internal error", data={"exc_type": type(exc).__name__})


def attach_trace_id(data: Any | None, trace_id: str | None) -> Any | None:
    """Add `trace_id` to dict-shaped error data; an existing trace_id wins."""
    if not trace_id:
        return data
    if data is None:
        return {"trace_id": trace_id}
    if isinstance(data, dict):
        return {"trace_id": trace_id, **data}
    return data
