from __future__ import annotations

from typing import Any

import pytest

from grounded_search_mcp.mcp_server.mcp.session import McpSession
from grounded_search_mcp.mcp_server.mcp.tools import (
    DuplicateToolError,
    FunctionTool,
    InvocationResult,
    RegistryFrozenError,
    Success,
    ToolDescriptor,
    ToolRegistry,
    UnknownToolError,
)
from grounded_search_mcp.mcp_server.mcp.schema import ParameterSpec


def _tool(name: str) -> FunctionTool:
    async def fn(session: McpSession, args: dict[str, Any]) -> InvocationResult:
        return Success(f"{name}:{args}")

    return FunctionTool(
        descriptor=ToolDescriptor(name=name, description=f"{name} tool", parameters=(ParameterSpec("x", "string"),)),
        fn=fn,
    )


def test_register_and_lookup() -> None:
    reg = ToolRegistry()
    reg.register(_tool("b"))
    reg.register(_tool("a"))

    assert reg.names() == ["a", "b"]
    assert reg.get("a") is not None
    assert reg.get("missing") is None
    assert reg.resolve("b").descriptor.name == "b"
    with pytest.raises(UnknownToolError):
        reg.resolve("missing")


def test_duplicate_name_is_rejected() -> None:
    reg = ToolRegistry()
    reg.register(_tool("search"))
    with pytest.raises(DuplicateToolError):
        reg.register(_tool("search"))
    assert reg.names() == ["search"]


def test_frozen_registry_rejects_registration() -> None:
    reg = ToolRegistry()
    reg.register(_tool("a"))
    reg.freeze()
    assert reg.frozen
    with pytest.raises(RegistryFrozenError):
        reg.register(_tool("b"))


def test_list_specs_is_sorted_and_carries_schema() -> None:
    reg = ToolRegistry()
    reg.register(_tool("zeta"))
    reg.register(_tool("alpha"))

    specs = reg.list_specs()
    assert [s["name"] for s in specs] == ["alpha", "zeta"]
    assert specs[0]["description"] == "alpha tool"
    assert specs[0]["inputSchema"] == {"type": "object", "properties": {"x": {"type": "string"}}}


def test_empty_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        ToolDescriptor(name="", description="x")
