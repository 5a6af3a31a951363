"""Bucket-level operations."""

from __future__ import annotations

import logging
from typing import Any

from aistor_mcp.bounded import bound_items
from aistor_mcp.errors import StorageError
from aistor_mcp.results import ToolSuccess, json_result, text_result
from aistor_mcp.storage import DELETE_BATCH_SIZE
from aistor_mcp.tools.args import flag, opt_str, req_str, tag_map
from aistor_mcp.tools.context import OperationContext

logger = logging.getLogger(__name__)

# S3 error codes meaning "nothing configured" rather than a real failure
NOT_CONFIGURED_CODES = frozenset(
    {
        "NoSuchTagSet",
        "NoSuchTagSetError",
        "NoSuchLifecycleConfiguration",
        "ReplicationConfigurationNotFoundError",
    }
)


def handle_list_buckets(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    return json_result(ctx.storage.list_buckets())


def handle_list_bucket_contents(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    prefix = opt_str(args, "prefix", "") or ""
    versions = flag(args, "versions")

    listing = bound_items(ctx.storage.iter_objects(bucket, prefix, versions), ctx.max_keys)
    if listing.truncated:
        logger.info(f"Listing of {bucket}/{prefix} truncated at {ctx.max_keys} objects")

    return json_result(
        {
            "bucket": bucket,
            "prefix": prefix,
            "objects": listing.items,
            "count": len(listing),
            "truncated": listing.truncated,
        }
    )


def handle_create_bucket(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    ctx.storage.make_bucket(bucket, opt_str(args, "region", "us-east-1"))
    return text_result(f"Successfully created bucket: {bucket}")


def handle_delete_bucket(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    force = flag(args, "force")

    if force:
        removed = 0
        batch: list[str] = []
        for obj in ctx.storage.iter_objects(bucket):
            batch.append(obj["name"])
            if len(batch) >= DELETE_BATCH_SIZE:
                removed += ctx.storage.remove_objects(bucket, batch)
                batch = []
        if batch:
            removed += ctx.storage.remove_objects(bucket, batch)
        logger.info(f"Force delete of {bucket}: removed {removed} objects")

    ctx.storage.remove_bucket(bucket)
    suffix = " (including all objects)" if force else ""
    return text_result(f"Successfully deleted bucket {bucket}{suffix}")


def handle_set_bucket_tags(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    ctx.storage.set_bucket_tags(bucket, tag_map(args, "tags"))
    return text_result(f"Successfully set tags for bucket {bucket}")


def handle_set_bucket_versioning(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    enabled = flag(args, "enabled")
    ctx.storage.set_bucket_versioning(bucket, enabled)
    state = "enabled" if enabled else "disabled"
    return text_result(f"Successfully {state} versioning for bucket {bucket}")


def handle_get_bucket_versioning(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    config = ctx.storage.get_bucket_versioning(bucket)
    if not config:
        return text_result(f"Versioning not configured for bucket {bucket}")
    return json_result(config)


def _not_configured(e: StorageError) -> bool:
    return e.code in NOT_CONFIGURED_CODES


def handle_get_bucket_tags(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    try:
        tags = ctx.storage.get_bucket_tags(bucket)
    except StorageError as e:
        if not _not_configured(e):
            raise
        tags = {}
    if not tags:
        return text_result(f"No tags found for bucket {bucket}")
    return json_result(tags)


def handle_get_bucket_lifecycle(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    try:
        rules = ctx.storage.get_bucket_lifecycle(bucket)
    except StorageError as e:
        if not _not_configured(e):
            raise
        rules = []
    if not rules:
        return text_result(f"No lifecycle configuration found for bucket {bucket}")
    return json_result({"Rules": rules})


def handle_get_bucket_replication(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    try:
        replication = ctx.storage.get_bucket_replication(bucket)
    except StorageError as e:
        if not _not_configured(e):
            raise
        replication = {}
    if not replication:
        return text_result(f"No replication configuration found for bucket {bucket}")
    return json_result(replication)
