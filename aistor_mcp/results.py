"""Result envelopes returned by the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import json
from typing import Any

from aistor_mcp.errors import AistorMcpError


@dataclass(frozen=True)
class TextBlock:
    """One typed content block of a tool result."""

    text: str
    type: str = "text"

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ToolSuccess:
    """Successful operation: one or more text blocks."""

    content: tuple[TextBlock, ...]

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"content": [block.to_dict() for block in self.content]}


@dataclass(frozen=True)
class ToolFailure:
    """Failed operation. Each transport decides how to render it."""

    error: AistorMcpError

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return self.error.message


DispatchResult = ToolSuccess | ToolFailure


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json(data: Any) -> str:
    """Stable JSON encoding used for every structured result."""
    return json.dumps(data, indent=2, sort_keys=True, default=_json_default)


def text_result(text: str) -> ToolSuccess:
    return ToolSuccess(content=(TextBlock(text=text),))


def json_result(data: Any) -> ToolSuccess:
    return text_result(to_json(data))
