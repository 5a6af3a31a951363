"""
Operation registry - the single catalog of tools shared by every transport.

Each OperationDescriptor names a handler, its parameter schema and the tier
it requires. The registry is built once at startup and never changes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from aistor_mcp.permissions import TIER_ORDER, Capabilities, Tier

if TYPE_CHECKING:
    from aistor_mcp.results import ToolSuccess
    from aistor_mcp.tools.context import OperationContext

Handler = Callable[["OperationContext", dict[str, Any]], "ToolSuccess"]

PARAM_TYPES = ("string", "number", "boolean", "object")


@dataclass(frozen=True)
class ParamSpec:
    """One named operation parameter."""

    name: str
    type: str
    description: str
    required: bool = False

    def __post_init__(self) -> None:
        if self.type not in PARAM_TYPES:
            raise ValueError(f"Invalid parameter type for {self.name}: {self.type}")

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.type == "object":
            schema["additionalProperties"] = {"type": "string"}
        return schema


@dataclass(frozen=True)
class OperationDescriptor:
    """Immutable description of a callable operation."""

    name: str
    tier: Tier
    description: str
    params: tuple[ParamSpec, ...]
    handler: Handler

    @property
    def required_params(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params if p.required)


def tool_schema(descriptor: OperationDescriptor) -> dict[str, Any]:
    """Render a descriptor as an MCP tool definition."""
    input_schema: dict[str, Any] = {
        "type": "object",
        "properties": {p.name: p.json_schema() for p in descriptor.params},
    }
    required = list(descriptor.required_params)
    if required:
        input_schema["required"] = required
    return {
        "name": descriptor.name,
        "description": descriptor.description,
        "inputSchema": input_schema,
    }


class OperationRegistry:
    """Read-only name -> descriptor catalog."""

    def __init__(self, descriptors: Iterable[OperationDescriptor]):
        by_name: dict[str, OperationDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.name in by_name:
                raise ValueError(f"Duplicate operation name: {descriptor.name}")
            by_name[descriptor.name] = descriptor
        self._by_name = by_name
        # Stable sort keeps registration order within each tier
        self._ordered = tuple(
            sorted(by_name.values(), key=lambda d: TIER_ORDER.index(d.tier))
        )

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def lookup(self, name: str) -> OperationDescriptor | None:
        return self._by_name.get(name)

    def list(self, capabilities: Capabilities) -> list[OperationDescriptor]:
        """Operations the capability set may call, in advertising order."""
        return [d for d in self._ordered if capabilities.allows(d.tier)]

    def all(self) -> list[OperationDescriptor]:
        return list(self._ordered)
