from __future__ import annotations

from typing import Any

from ..jsonrpc.codec import INTERNAL_ERROR
from ..jsonrpc.dispatcher import JsonRpcAppError
from .tools.base import Failure, InvocationResult, Success


def build_tool_result(result: InvocationResult) -> dict[str, Any]:
    """Build the MCP tools/call result for one invocation outcome.

    Tool-level failures are ordinary results flagged with `isError`; they are
    never turned into JSON-RPC errors.
    """
    if isinstance(result, Success):
        return {"content": [{"type": "text", "text": result.payload}], "isError": False}
    if isinstance(result, Failure):
        return {"content": [{"type": "text", "text": result.message}], "isError": True}
    raise JsonRpcAppError(INTERNAL_ERROR, f"tool returned unsupported result type: {type(result).__name__}")
