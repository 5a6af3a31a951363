"""
Object-level operations.

``handle_move_object`` is copy-then-delete inside one call and is not
atomic: when the delete fails after a successful copy the object exists in
both locations and the call fails with PartialMoveError describing that
state. Nothing is rolled back.
"""

from __future__ import annotations

import logging
from typing import Any

from aistor_mcp.errors import PartialMoveError, StorageError
from aistor_mcp.results import ToolSuccess, json_result, text_result
from aistor_mcp.tools.args import int_arg, opt_str, req_str, tag_map
from aistor_mcp.tools.buckets import NOT_CONFIGURED_CODES
from aistor_mcp.tools.context import OperationContext
from aistor_mcp.tools.fs import validate_path

logger = logging.getLogger(__name__)

DEFAULT_PRESIGN_EXPIRY = 604800  # 7 days


def handle_get_object_metadata(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    metadata = ctx.storage.stat_object(
        req_str(args, "bucket"), req_str(args, "object"), opt_str(args, "versionId")
    )
    return json_result(metadata)


def handle_get_object_tags(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    try:
        tags = ctx.storage.get_object_tags(bucket, key, opt_str(args, "versionId"))
    except StorageError as e:
        if e.code not in NOT_CONFIGURED_CODES:
            raise
        tags = {}
    if not tags:
        return text_result(f"No tags found for object {key} in bucket {bucket}")
    return json_result(tags)


def handle_get_object_presigned_url(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    expiry = int_arg(args, "expiry", min(DEFAULT_PRESIGN_EXPIRY, ctx.presign_max_expiry))
    if not (1 <= expiry <= ctx.presign_max_expiry):
        raise ValueError(f"expiry must be between 1 and {ctx.presign_max_expiry} seconds")

    url = ctx.storage.presigned_get_object(bucket, key, expiry)
    return text_result(f"Presigned URL: {url}\nExpires in: {expiry} seconds")


def handle_download_object(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    local_path = req_str(args, "localPath")
    resolved = validate_path(local_path, ctx.allowed_directories)

    ctx.storage.fget_object(bucket, key, str(resolved), opt_str(args, "versionId"))
    return text_result(f"Successfully downloaded {key} from bucket {bucket} to {local_path}")


def handle_upload_object(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    local_path = req_str(args, "localPath")
    resolved = validate_path(local_path, ctx.allowed_directories)
    if not resolved.is_file():
        raise FileNotFoundError(f"Not a file: {local_path}")

    ctx.storage.fput_object(bucket, key, str(resolved), opt_str(args, "contentType"))
    return text_result(f"Successfully uploaded {local_path} to {bucket}/{key}")


def handle_text_to_object(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    content_type = opt_str(args, "contentType", "text/plain") or "text/plain"

    ctx.storage.put_text(bucket, key, req_str(args, "text"), content_type)
    return text_result(f"Successfully created object {bucket}/{key} from text content")


def _copy(ctx: OperationContext, args: dict[str, Any]) -> tuple[str, str]:
    source = f"{req_str(args, 'sourceBucket')}/{req_str(args, 'sourceObject')}"
    dest = f"{req_str(args, 'destBucket')}/{req_str(args, 'destObject')}"
    ctx.storage.copy_object(
        req_str(args, "sourceBucket"),
        req_str(args, "sourceObject"),
        req_str(args, "destBucket"),
        req_str(args, "destObject"),
        opt_str(args, "versionId"),
    )
    return source, dest


def handle_copy_object(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    source, dest = _copy(ctx, args)
    return text_result(f"Successfully copied {source} to {dest}")


def handle_set_object_tags(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    ctx.storage.set_object_tags(bucket, key, tag_map(args, "tags"), opt_str(args, "versionId"))
    return text_result(f"Successfully set tags for {bucket}/{key}")


def handle_delete_object(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    bucket = req_str(args, "bucket")
    key = req_str(args, "object")
    version_id = opt_str(args, "versionId")
    ctx.storage.remove_object(bucket, key, version_id)
    suffix = f" (version: {version_id})" if version_id else ""
    return text_result(f"Successfully deleted object {bucket}/{key}{suffix}")


def handle_move_object(ctx: OperationContext, args: dict[str, Any]) -> ToolSuccess:
    # A failed copy propagates as-is: nothing has changed yet
    source, dest = _copy(ctx, args)

    try:
        ctx.storage.remove_object(
            req_str(args, "sourceBucket"),
            req_str(args, "sourceObject"),
            opt_str(args, "versionId"),
        )
    except StorageError as e:
        logger.warning(f"Move {source} -> {dest}: copy succeeded, delete failed: {e.message}")
        raise PartialMoveError(
            f"Copied {source} to {dest}, but deleting the source failed: {e.message}. "
            f"The object now exists in both locations.",
            code=e.code,
            source=source,
            destination=dest,
            copied=True,
            deleted=False,
        ) from e

    return text_result(f"Successfully moved {source} to {dest}")
