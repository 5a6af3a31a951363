"""Operation catalog: every tool the server can advertise, grouped by tier."""

from __future__ import annotations

from aistor_mcp.permissions import Tier
from aistor_mcp.registry import OperationDescriptor, OperationRegistry, ParamSpec
from aistor_mcp.tools import admin, buckets, local, objects

BUCKET = ParamSpec("bucket", "string", "Name of the bucket", required=True)
OBJECT = ParamSpec("object", "string", "Name of the object", required=True)
VERSION_ID = ParamSpec("versionId", "string", "Specific version ID (optional)")
TAGS = ParamSpec("tags", "object", "Key-value pairs of tags", required=True)

COPY_PARAMS = (
    ParamSpec("sourceBucket", "string", "Source bucket name", required=True),
    ParamSpec("sourceObject", "string", "Source object name", required=True),
    ParamSpec("destBucket", "string", "Destination bucket name", required=True),
    ParamSpec("destObject", "string", "Destination object name", required=True),
    VERSION_ID,
)

PUBLIC_OPERATIONS = [
    OperationDescriptor(
        name="list_buckets",
        tier=Tier.PUBLIC,
        description="List all buckets in the AIStor object store with their basic information",
        params=(),
        handler=buckets.handle_list_buckets,
    ),
    OperationDescriptor(
        name="list_bucket_contents",
        tier=Tier.PUBLIC,
        description=(
            "List objects in a bucket with their sizes and last modified dates. "
            "Results are capped; 'truncated' is true when more objects exist "
            "(narrow the listing with a prefix)"
        ),
        params=(
            BUCKET,
            ParamSpec("prefix", "string", "Prefix to filter objects (optional)"),
            ParamSpec("versions", "boolean", "Include object versions (optional)"),
        ),
        handler=buckets.handle_list_bucket_contents,
    ),
    OperationDescriptor(
        name="get_object_metadata",
        tier=Tier.PUBLIC,
        description=(
            "Get detailed metadata of an object including content type, size, "
            "custom headers, and system properties"
        ),
        params=(BUCKET, OBJECT, VERSION_ID),
        handler=objects.handle_get_object_metadata,
    ),
    OperationDescriptor(
        name="get_object_tags",
        tier=Tier.PUBLIC,
        description="Get all tags associated with a specific object in a bucket",
        params=(BUCKET, OBJECT, VERSION_ID),
        handler=objects.handle_get_object_tags,
    ),
    OperationDescriptor(
        name="get_object_presigned_url",
        tier=Tier.PUBLIC,
        description=(
            "Get a presigned URL for an object in a bucket, with an optional "
            "expiration time. Default is 7 days."
        ),
        params=(
            BUCKET,
            OBJECT,
            ParamSpec(
                "expiry", "number", "Expiration time in seconds (default: 604800 = 7 days)"
            ),
        ),
        handler=objects.handle_get_object_presigned_url,
    ),
    OperationDescriptor(
        name="download_object",
        tier=Tier.PUBLIC,
        description="Download an object from a specified bucket to the local filesystem",
        params=(
            BUCKET,
            OBJECT,
            ParamSpec("localPath", "string", "Local file path to save the object", required=True),
            VERSION_ID,
        ),
        handler=objects.handle_download_object,
    ),
    OperationDescriptor(
        name="list_local_files",
        tier=Tier.PUBLIC,
        description=(
            "List all files and directories in a specified local directory path "
            "with their attributes"
        ),
        params=(
            ParamSpec("directory", "string", "Local directory path to list", required=True),
        ),
        handler=local.handle_list_local_files,
    ),
    OperationDescriptor(
        name="list_allowed_directories",
        tier=Tier.PUBLIC,
        description="List all directories that are permitted for operations with the server",
        params=(),
        handler=local.handle_list_allowed_directories,
    ),
]

WRITE_OPERATIONS = [
    OperationDescriptor(
        name="create_bucket",
        tier=Tier.WRITE,
        description="Create a new bucket, optionally in a specific region",
        params=(
            ParamSpec("bucket", "string", "Name of the bucket to create", required=True),
            ParamSpec("region", "string", "Region for the bucket (optional)"),
        ),
        handler=buckets.handle_create_bucket,
    ),
    OperationDescriptor(
        name="upload_object",
        tier=Tier.WRITE,
        description="Upload a file from local filesystem to a specified bucket",
        params=(
            BUCKET,
            ParamSpec("object", "string", "Name of the object in the bucket", required=True),
            ParamSpec("localPath", "string", "Local file path to upload", required=True),
            ParamSpec("contentType", "string", "Content type (optional)"),
        ),
        handler=objects.handle_upload_object,
    ),
    OperationDescriptor(
        name="text_to_object",
        tier=Tier.WRITE,
        description=(
            "Convert text to an object in a bucket, with support for different content types"
        ),
        params=(
            BUCKET,
            ParamSpec("object", "string", "Name of the object in the bucket", required=True),
            ParamSpec("text", "string", "Text content to upload", required=True),
            ParamSpec("contentType", "string", "Content type (default: text/plain)"),
        ),
        handler=objects.handle_text_to_object,
    ),
    OperationDescriptor(
        name="copy_object",
        tier=Tier.WRITE,
        description="Copy an object from one bucket to another while preserving metadata",
        params=COPY_PARAMS,
        handler=objects.handle_copy_object,
    ),
    OperationDescriptor(
        name="set_object_tags",
        tier=Tier.WRITE,
        description=(
            "Set or update tags for an existing object in a bucket, supporting "
            "multiple key-value pairs"
        ),
        params=(BUCKET, OBJECT, TAGS, VERSION_ID),
        handler=objects.handle_set_object_tags,
    ),
    OperationDescriptor(
        name="set_bucket_tags",
        tier=Tier.WRITE,
        description="Set the tags for a specified bucket",
        params=(BUCKET, TAGS),
        handler=buckets.handle_set_bucket_tags,
    ),
    OperationDescriptor(
        name="set_bucket_versioning",
        tier=Tier.WRITE,
        description="Enable or suspend versioning for a bucket",
        params=(
            BUCKET,
            ParamSpec("enabled", "boolean", "Enable or disable versioning", required=True),
        ),
        handler=buckets.handle_set_bucket_versioning,
    ),
]

DELETE_OPERATIONS = [
    OperationDescriptor(
        name="delete_object",
        tier=Tier.DELETE,
        description="Delete a specific object or version from a bucket",
        params=(BUCKET, OBJECT, VERSION_ID),
        handler=objects.handle_delete_object,
    ),
    OperationDescriptor(
        name="delete_bucket",
        tier=Tier.DELETE,
        description="Delete a bucket and optionally force removal of all contained objects",
        params=(
            BUCKET,
            ParamSpec("force", "boolean", "Force delete even if bucket is not empty"),
        ),
        handler=buckets.handle_delete_bucket,
    ),
    OperationDescriptor(
        name="move_object",
        tier=Tier.DELETE,
        description=(
            "Move an object between buckets by copying to destination and removing "
            "from source. Not atomic: if removing the source fails the object "
            "remains in both locations and the error says so"
        ),
        params=COPY_PARAMS,
        handler=objects.handle_move_object,
    ),
]

ADMIN_OPERATIONS = [
    OperationDescriptor(
        name="get_admin_info",
        tier=Tier.ADMIN,
        description=(
            "Get technical information about the AIStor object store, including "
            "connection status and enabled features"
        ),
        params=(),
        handler=admin.handle_get_admin_info,
    ),
    OperationDescriptor(
        name="get_data_usage_info",
        tier=Tier.ADMIN,
        description=(
            "Get data usage information for the AIStor object store including "
            "number of objects and total size by each bucket"
        ),
        params=(),
        handler=admin.handle_get_data_usage_info,
    ),
    OperationDescriptor(
        name="get_bucket_versioning",
        tier=Tier.ADMIN,
        description="Get the versioning status and configuration of a specified bucket",
        params=(BUCKET,),
        handler=buckets.handle_get_bucket_versioning,
    ),
    OperationDescriptor(
        name="get_bucket_tags",
        tier=Tier.ADMIN,
        description="Get the tags of a specified bucket",
        params=(BUCKET,),
        handler=buckets.handle_get_bucket_tags,
    ),
    OperationDescriptor(
        name="get_bucket_lifecycle",
        tier=Tier.ADMIN,
        description="Get the lifecycle (ILM) rules of a specified bucket",
        params=(BUCKET,),
        handler=buckets.handle_get_bucket_lifecycle,
    ),
    OperationDescriptor(
        name="get_bucket_replication",
        tier=Tier.ADMIN,
        description="Get the replication configuration of a specified bucket",
        params=(BUCKET,),
        handler=buckets.handle_get_bucket_replication,
    ),
]

OPERATIONS: list[OperationDescriptor] = (
    PUBLIC_OPERATIONS + WRITE_OPERATIONS + DELETE_OPERATIONS + ADMIN_OPERATIONS
)


def build_registry() -> OperationRegistry:
    """The registry served by both transports."""
    return OperationRegistry(OPERATIONS)
