from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any

from ..errors import DEADLINE_EXCEEDED, attach_trace_id
from ..jsonrpc.codec import INTERNAL_ERROR, INVALID_PARAMS
from ..jsonrpc.dispatcher import JsonRpcAppError
from .envelope import build_tool_result
from .session import McpSession
from .tools.base import Tool
from .tools.registry import ToolRegistry


LATEST_PROTOCOL_VERSION = "2025-03-26"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")


@dataclass
class McpProtocol:
    """MCP semantic layer.

    This layer does not care about transport (stdio/http). It exposes handlers
    for MCP methods, and delegates tool execution to ToolRegistry.
    """

    tools: ToolRegistry
    server_name: str = "mcp-gemini-grounded-search"
    server_version: str = "0.1.0"

    def handle_initialize(self, params: dict[str, Any] | None) -> dict[str, Any]:
        requested = (params or {}).get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        return {
            "protocolVersion": version,
            "serverInfo": {"name": self.server_name, "version": self.server_version},
            "capabilities": {
                "tools": {"listChanged": False},
            },
        }

    def handle_tools_list(self, session: McpSession) -> dict[str, Any]:
        _ = session
        return {"tools": self.tools.list_specs()}

    def _resolve(self, name: str, args: dict[str, Any] | None) -> tuple[Tool, dict[str, Any]]:
        tool = self.tools.get(name)
        if tool is None:
            raise JsonRpcAppError(INVALID_PARAMS, f"unknown tool: {name}")
        if args is not None and not isinstance(args, dict):
            raise JsonRpcAppError(INVALID_PARAMS, "tool args must be an object")
        return tool, args or {}

    async def handle_tools_call(self, session: McpSession, name: str, args: dict[str, Any] | None) -> dict[str, Any]:
        """Run one tool call under the session deadline, if any.

        Every error leaving this method is a JsonRpcAppError whose data carries
        the trace_id of the call.
        """
        call = session.new_call()
        expired = _deadline_error(call.trace_id)
        if call.deadline_ts is not None and time.time() >= call.deadline_ts:
            raise expired

        tool, call_args = self._resolve(name, args)
        pending = tool.call(call, call_args)
        budget = call.remaining()

        try:
            out = await (pending if budget is None else asyncio.wait_for(pending, timeout=budget))
        except JsonRpcAppError as e:
            raise JsonRpcAppError(e.code, e.message, attach_trace_id(e.data, call.trace_id)) from e
        except asyncio.TimeoutError as e:
            raise expired from e
        except Exception as e:
            data = {"trace_id": call.trace_id, "exc_type": type(e).__name__}
            raise JsonRpcAppError(INTERNAL_ERROR, "internal error", data) from e
        return build_tool_result(out)


def _deadline_error(trace_id: str) -> JsonRpcAppError:
    return JsonRpcAppError(DEADLINE_EXCEEDED, "deadline exceeded", {"trace_id": trace_id})
