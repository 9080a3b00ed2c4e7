from __future__ import annotations

import pytest

from grounded_search_mcp.mcp_server.jsonrpc.dispatcher import JsonRpcAppError
from grounded_search_mcp.mcp_server.mcp.envelope import build_tool_result
from grounded_search_mcp.mcp_server.mcp.schema import (
    ParameterSpec,
    SchemaDefinitionError,
    build_input_schema,
    check_parameters,
)
from grounded_search_mcp.mcp_server.mcp.tools import Failure, Success


def test_build_input_schema_required_and_enum() -> None:
    schema = build_input_schema(
        [
            ParameterSpec("query", "string", "the question", required=True),
            ParameterSpec("max_token", "number"),
            ParameterSpec("level", "string", enum=("LOW", "HIGH")),
        ]
    )
    assert schema["type"] == "object"
    assert schema["required"] == ["query"]
    assert schema["properties"]["query"] == {"type": "string", "description": "the question"}
    assert schema["properties"]["max_token"] == {"type": "number"}
    assert schema["properties"]["level"]["enum"] == ["LOW", "HIGH"]


def test_build_input_schema_omits_empty_required() -> None:
    assert "required" not in build_input_schema([ParameterSpec("x", "boolean")])


@pytest.mark.parametrize(
    "params",
    [
        [ParameterSpec("x", "string"), ParameterSpec("x", "number")],
        [ParameterSpec("x", "object")],
        [ParameterSpec("x", "number", enum=("1",))],
        [ParameterSpec("", "string")],
    ],
)
def test_check_parameters_rejects_bad_definitions(params: list[ParameterSpec]) -> None:
    with pytest.raises(SchemaDefinitionError):
        check_parameters(params)


def test_tool_result_success_and_failure() -> None:
    ok = build_tool_result(Success('{"text":"hi"}'))
    assert ok == {"content": [{"type": "text", "text": '{"text":"hi"}'}], "isError": False}

    bad = build_tool_result(Failure("Missing or empty query parameter"))
    assert bad["isError"] is True
    assert bad["content"][0]["text"] == "Missing or empty query parameter"


def test_tool_result_rejects_unknown_shape() -> None:
    with pytest.raises(JsonRpcAppError):
        build_tool_result(object())  # type: ignore[arg-type]
