from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable


PARAMETER_TYPES = {"string", "number", "integer", "boolean"}


class SchemaDefinitionError(ValueError):
    pass


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: str
    description: str = ""
    required: bool = False
    enum: tuple[str, ...] | None = None


def check_parameters(params: Iterable[ParameterSpec]) -> None:
    seen: set[str] = set()
    for p in params:
        if not isinstance(p.name, str) or not p.name:
            raise SchemaDefinitionError("parameter name must be non-empty string")
        if p.name in seen:
            raise SchemaDefinitionError(f"duplicate parameter: {p.name}")
        if p.type not in PARAMETER_TYPES:
            raise SchemaDefinitionError(f"parameter {p.name}: unsupported type {p.type!r}")
        if p.enum is not None and p.type != "string":
            raise SchemaDefinitionError(f"parameter {p.name}: enum is only supported for strings")
        seen.add(p.name)


def build_input_schema(params: Iterable[ParameterSpec]) -> dict[str, Any]:
    """Render parameter specs as the `inputSchema` object advertised by tools/list.

    Only the subset needed for flat argument objects:
    - type=object with properties + required
    - primitive property types with description and optional string enum
    """
    props: dict[str, Any] = {}
    required: list[str] = []
    for p in params:
        prop: dict[str, Any] = {"type": p.type}
        if p.description:
            prop["description"] = p.description
        if p.enum:
            prop["enum"] = list(p.enum)
        props[p.name] = prop
        if p.required:
            required.append(p.name)

    schema: dict[str, Any] = {"type": "object", "properties": props}
    if required:
        schema["required"] = required
    return schema
