"""Administrative operations: server info and usage scan."""

from __future__ import annotations

from typing import Any

from aistor_mcp.bounded import bound_items
from aistor_mcp.errors import StorageError
from aistor_mcp.results import ToolSuccess, json_result
from aistor_mcp.tools.context import OperationContext


def handle_get_admin_info(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    try:
        buckets = ctx.storage.list_buckets()
    except StorageError as e:
        raise StorageError(f"Cannot get admin info: {e.message}", code=e.code) from e

    return json_result(
        {
            "endpoint": ctx.endpoint,
            "useSSL": ctx.use_ssl,
            "status": "Connected",
            "bucketCount": len(buckets),
            "features": ctx.capabilities.features(),
        }
    )


def handle_get_data_usage_info(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    """
    Per-bucket object count and total size.

    Each bucket scan is capped at ``max_keys`` objects; a capped bucket is
    flagged ``truncated`` and its totals cover only the scanned objects.
    """
    usage: list[dict[str, Any]] = []
    for bucket in ctx.storage.list_buckets():
        scan = bound_items(ctx.storage.iter_objects(bucket["name"]), ctx.max_keys)
        usage.append(
            {
                "name": bucket["name"],
                "objectCount": len(scan),
                "totalSize": sum(obj.get("size") or 0 for obj in scan.items),
                "created": bucket.get("creationDate"),
                "truncated": scan.truncated,
            }
        )

    return json_result(
        {
            "buckets": usage,
            "truncated": any(b["truncated"] for b in usage),
        }
    )
