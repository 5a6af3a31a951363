"""
Object store client for the AIStor MCP server.

Thin wrapper over a boto3 S3 client pointed at a MinIO/AIStor endpoint.
Every botocore/boto3 failure is re-raised as StorageError so the dispatcher
sees one error type for the remote service.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

import boto3
from boto3.exceptions import Boto3Error
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from aistor_mcp.errors import StorageError

if TYPE_CHECKING:
    from aistor_mcp.config import McpStorageConfig

logger = logging.getLogger(__name__)

# S3 DeleteObjects accepts at most 1000 keys per request
DELETE_BATCH_SIZE = 1000


@contextmanager
def storage_call(operation: str) -> Iterator[None]:
    """Translate boto errors raised inside the block into StorageError."""
    try:
        yield
    except ClientError as e:
        error = e.response.get("Error", {})
        code = error.get("Code") or "ClientError"
        message = error.get("Message") or str(e)
        raise StorageError(f"{code}: {message}", code=code, operation=operation) from e
    except (BotoCoreError, Boto3Error) as e:
        raise StorageError(str(e), code=type(e).__name__, operation=operation) from e


def _strip_etag(etag: str | None) -> str | None:
    return etag.strip('"') if etag else etag


def _tag_set(tags: dict[str, str]) -> dict[str, list[dict[str, str]]]:
    return {"TagSet": [{"Key": str(k), "Value": str(v)} for k, v in tags.items()]}


def _tags_from_set(tag_set: list[dict[str, str]]) -> dict[str, str]:
    return {t["Key"]: t["Value"] for t in tag_set}


def _version_args(version_id: str | None) -> dict[str, str]:
    return {"VersionId": version_id} if version_id else {}


class StorageClient:
    """Fixed call contract against the remote object store."""

    def __init__(self, s3_client: Any):
        self._s3 = s3_client

    # -- buckets -------------------------------------------------------------

    def list_buckets(self) -> list[dict[str, Any]]:
        with storage_call("list_buckets"):
            response = self._s3.list_buckets()
        return [
            {"name": b["Name"], "creationDate": b.get("CreationDate")}
            for b in response.get("Buckets", [])
        ]

    def make_bucket(self, bucket: str, region: str | None = None) -> None:
        kwargs: dict[str, Any] = {"Bucket": bucket}
        # us-east-1 is the implicit location and must not be sent explicitly
        if region and region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": region}
        with storage_call("make_bucket"):
            self._s3.create_bucket(**kwargs)

    def remove_bucket(self, bucket: str) -> None:
        with storage_call("remove_bucket"):
            self._s3.delete_bucket(Bucket=bucket)

    # -- enumeration ---------------------------------------------------------

    def iter_objects(
        self, bucket: str, prefix: str = "", versions: bool = False
    ) -> Iterator[dict[str, Any]]:
        """
        Lazily yield objects (or object versions) under ``prefix``.

        Pages are fetched on demand, so a consumer that stops early never
        requests the remaining pages.
        """
        if versions:
            yield from self._iter_versions(bucket, prefix)
            return

        paginator = self._s3.get_paginator("list_objects_v2")
        with storage_call("list_objects"):
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Contents", []):
                    yield {
                        "name": obj["Key"],
                        "size": obj.get("Size", 0),
                        "etag": _strip_etag(obj.get("ETag")),
                        "lastModified": obj.get("LastModified"),
                        "storageClass": obj.get("StorageClass"),
                    }

    def _iter_versions(self, bucket: str, prefix: str) -> Iterator[dict[str, Any]]:
        paginator = self._s3.get_paginator("list_object_versions")
        with storage_call("list_object_versions"):
            for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
                for obj in page.get("Versions", []):
                    yield {
                        "name": obj["Key"],
                        "size": obj.get("Size", 0),
                        "etag": _strip_etag(obj.get("ETag")),
                        "lastModified": obj.get("LastModified"),
                        "versionId": obj.get("VersionId"),
                        "isLatest": obj.get("IsLatest", False),
                        "isDeleteMarker": False,
                    }
                for marker in page.get("DeleteMarkers", []):
                    yield {
                        "name": marker["Key"],
                        "size": 0,
                        "lastModified": marker.get("LastModified"),
                        "versionId": marker.get("VersionId"),
                        "isLatest": marker.get("IsLatest", False),
                        "isDeleteMarker": True,
                    }

    # -- objects -------------------------------------------------------------

    def stat_object(self, bucket: str, key: str, version_id: str | None = None) -> dict[str, Any]:
        with storage_call("stat_object"):
            response = self._s3.head_object(Bucket=bucket, Key=key, **_version_args(version_id))
        return {
            "size": response.get("ContentLength"),
            "etag": _strip_etag(response.get("ETag")),
            "lastModified": response.get("LastModified"),
            "contentType": response.get("ContentType"),
            "versionId": response.get("VersionId"),
            "metaData": response.get("Metadata", {}),
        }

    def get_object_tags(
        self, bucket: str, key: str, version_id: str | None = None
    ) -> dict[str, str]:
        with storage_call("get_object_tags"):
            response = self._s3.get_object_tagging(
                Bucket=bucket, Key=key, **_version_args(version_id)
            )
        return _tags_from_set(response.get("TagSet", []))

    def set_object_tags(
        self, bucket: str, key: str, tags: dict[str, str], version_id: str | None = None
    ) -> None:
        with storage_call("set_object_tags"):
            self._s3.put_object_tagging(
                Bucket=bucket, Key=key, Tagging=_tag_set(tags), **_version_args(version_id)
            )

    def presigned_get_object(self, bucket: str, key: str, expiry: int) -> str:
        with storage_call("presigned_get_object"):
            return self._s3.generate_presigned_url(
                "get_object",
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=expiry,
            )

    def fget_object(
        self, bucket: str, key: str, path: str, version_id: str | None = None
    ) -> None:
        extra = _version_args(version_id) or None
        with storage_call("fget_object"):
            self._s3.download_file(bucket, key, path, ExtraArgs=extra)

    def fput_object(
        self, bucket: str, key: str, path: str, content_type: str | None = None
    ) -> None:
        extra = {"ContentType": content_type} if content_type else None
        with storage_call("fput_object"):
            self._s3.upload_file(path, bucket, key, ExtraArgs=extra)

    def put_text(self, bucket: str, key: str, text: str, content_type: str) -> int:
        body = text.encode("utf-8")
        with storage_call("put_object"):
            self._s3.put_object(
                Bucket=bucket,
                Key=key,
                Body=body,
                ContentLength=len(body),
                ContentType=content_type,
            )
        return len(body)

    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        dest_bucket: str,
        dest_key: str,
        version_id: str | None = None,
    ) -> None:
        source: dict[str, str] = {"Bucket": source_bucket, "Key": source_key}
        source.update(_version_args(version_id))
        with storage_call("copy_object"):
            self._s3.copy_object(Bucket=dest_bucket, Key=dest_key, CopySource=source)

    def remove_object(self, bucket: str, key: str, version_id: str | None = None) -> None:
        with storage_call("remove_object"):
            self._s3.delete_object(Bucket=bucket, Key=key, **_version_args(version_id))

    def remove_objects(self, bucket: str, keys: list[str]) -> int:
        """Delete keys in batches. Returns the number of keys removed."""
        removed = 0
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start : start + DELETE_BATCH_SIZE]
            with storage_call("remove_objects"):
                response = self._s3.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            errors = response.get("Errors", [])
            if errors:
                first = errors[0]
                raise StorageError(
                    f"{first.get('Code')}: failed to delete {first.get('Key')} "
                    f"({len(errors)} key(s) not deleted)",
                    code=first.get("Code"),
                    operation="remove_objects",
                    failed_keys=[e.get("Key") for e in errors],
                )
            removed += len(batch)
        return removed

    # -- bucket metadata -----------------------------------------------------

    def set_bucket_tags(self, bucket: str, tags: dict[str, str]) -> None:
        with storage_call("set_bucket_tags"):
            self._s3.put_bucket_tagging(Bucket=bucket, Tagging=_tag_set(tags))

    def get_bucket_tags(self, bucket: str) -> dict[str, str]:
        with storage_call("get_bucket_tags"):
            response = self._s3.get_bucket_tagging(Bucket=bucket)
        return _tags_from_set(response.get("TagSet", []))

    def set_bucket_versioning(self, bucket: str, enabled: bool) -> None:
        status = "Enabled" if enabled else "Suspended"
        with storage_call("set_bucket_versioning"):
            self._s3.put_bucket_versioning(
                Bucket=bucket, VersioningConfiguration={"Status": status}
            )

    def get_bucket_versioning(self, bucket: str) -> dict[str, Any]:
        with storage_call("get_bucket_versioning"):
            response = self._s3.get_bucket_versioning(Bucket=bucket)
        return {k: v for k, v in response.items() if k != "ResponseMetadata"}

    def get_bucket_lifecycle(self, bucket: str) -> list[dict[str, Any]]:
        with storage_call("get_bucket_lifecycle"):
            response = self._s3.get_bucket_lifecycle_configuration(Bucket=bucket)
        return response.get("Rules", [])

    def get_bucket_replication(self, bucket: str) -> dict[str, Any]:
        with storage_call("get_bucket_replication"):
            response = self._s3.get_bucket_replication(Bucket=bucket)
        return response.get("ReplicationConfiguration", {})


def create_storage_client(config: McpStorageConfig) -> StorageClient:
    """Build a StorageClient for the configured endpoint."""
    s3 = boto3.client(
        "s3",
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.access_key or None,
        aws_secret_access_key=config.secret_key or None,
        region_name=config.region,
        config=Config(
            signature_version="s3v4",
            retries={"max_attempts": config.max_attempts, "mode": "adaptive"},
            s3={"addressing_style": "path"},
        ),
    )
    logger.info(f"Storage client created for {config.endpoint_url}")
    return StorageClient(s3)
