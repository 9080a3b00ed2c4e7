from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol, Union

from ..schema import ParameterSpec, build_input_schema, check_parameters
from ..session import McpSession


@dataclass(frozen=True)
class Success:
    payload: str


@dataclass(frozen=True)
class Failure:
    message: str


InvocationResult = Union[Success, Failure]

ToolHandler = Callable[[McpSession, dict[str, Any]], Awaitable[InvocationResult]]


@dataclass(frozen=True)
class ToolDescriptor:
    name: str
    description: str
    parameters: tuple[ParameterSpec, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("tool name must be non-empty string")
        check_parameters(self.parameters)

    @property
    def input_schema(self) -> dict[str, Any]:
        return build_input_schema(self.parameters)


class Tool(Protocol):
    descriptor: ToolDescriptor

    async def call(self, session: McpSession, args: dict[str, Any]) -> InvocationResult:
        ...


@dataclass
class FunctionTool:
    descriptor: ToolDescriptor
    fn: ToolHandler

    async def call(self, session: McpSession, args: dict[str, Any]) -> InvocationResult:
        return await self.fn(session, args)
