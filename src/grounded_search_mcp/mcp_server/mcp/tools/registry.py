from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .base import Tool


class ToolRegistryError(RuntimeError):
    pass


class DuplicateToolError(ToolRegistryError):
    pass


class UnknownToolError(ToolRegistryError, LookupError):
    pass


class RegistryFrozenError(ToolRegistryError):
    pass


@dataclass
class ToolRegistry:
    """Name -> tool map, filled once at startup and read-only once frozen."""

    _tools: dict[str, Tool] = field(default_factory=dict)
    _frozen: bool = False

    def register(self, tool: Tool) -> None:
        if self._frozen:
            raise RegistryFrozenError("tool registry is frozen; register tools before serving")
        name = tool.descriptor.name
        if name in self._tools:
            raise DuplicateToolError(f"tool already registered: {name}")
        self._tools[name] = tool

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def resolve(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(f"unknown tool: {name}")
        return tool

    def names(self) -> list[str]:
        return sorted(self._tools)

    def list_specs(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for tool in self._tools.values():
            d = tool.descriptor
            out.append(
                {
                    "name": d.name,
                    "description": d.description,
                    "inputSchema": d.input_schema,
                }
            )
        out.sort(key=lambda x: x["name"])
        return out
