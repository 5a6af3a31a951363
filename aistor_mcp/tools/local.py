"""Local filesystem operations: directory listing and sandbox introspection."""

from __future__ import annotations

from typing import Any

from aistor_mcp.results import ToolSuccess, json_result
from aistor_mcp.tools.args import req_str
from aistor_mcp.tools.context import OperationContext
from aistor_mcp.tools.fs import list_local_files


def handle_list_local_files(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    resolved, listing = list_local_files(
        req_str(args, "directory"), ctx.allowed_directories, max_entries=ctx.max_keys
    )
    return json_result(
        {
            "directory": str(resolved),
            "entries": listing.items,
            "count": len(listing),
            "truncated": listing.truncated,
        }
    )


def handle_list_allowed_directories(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    return json_result(list(ctx.allowed_directories))
