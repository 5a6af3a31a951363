"""StorageClient tests against a stubbed boto3 S3 client."""

from datetime import UTC, datetime

import boto3
from botocore.stub import Stubber
import pytest

from aistor_mcp.bounded import bound_items
from aistor_mcp.config import McpStorageConfig
from aistor_mcp.errors import StorageError
from aistor_mcp.storage import StorageClient, create_storage_client

WHEN = datetime(2025, 1, 2, tzinfo=UTC)


@pytest.fixture
def s3():
    return boto3.client(
        "s3",
        endpoint_url="http://storage.test:9000",
        region_name="us-east-1",
        aws_access_key_id="test",
        aws_secret_access_key="test",
    )


@pytest.fixture
def stubbed(s3):
    with Stubber(s3) as stubber:
        yield stubber, StorageClient(s3)
        stubber.assert_no_pending_responses()


def test_list_buckets(stubbed):
    stubber, client = stubbed
    stubber.add_response("list_buckets", {"Buckets": [{"Name": "a", "CreationDate": WHEN}]})

    assert client.list_buckets() == [{"name": "a", "creationDate": WHEN}]


def test_client_error_mapped(stubbed):
    stubber, client = stubbed
    stubber.add_client_error(
        "head_object", service_error_code="NoSuchKey", service_message="Not Found", http_status_code=404
    )

    with pytest.raises(StorageError) as exc:
        client.stat_object("b", "missing")

    assert exc.value.code == "NoSuchKey"
    assert exc.value.message == "NoSuchKey: Not Found"
    assert exc.value.data["operation"] == "stat_object"


def test_stat_object(stubbed):
    stubber, client = stubbed
    stubber.add_response(
        "head_object",
        {
            "ContentLength": 5,
            "ETag": '"abc123"',
            "ContentType": "text/plain",
            "LastModified": WHEN,
            "Metadata": {"owner": "me"},
        },
        {"Bucket": "b", "Key": "k", "VersionId": "v1"},
    )

    meta = client.stat_object("b", "k", "v1")

    assert meta["size"] == 5
    assert meta["etag"] == "abc123"
    assert meta["metaData"] == {"owner": "me"}


def test_iter_objects_is_lazy_across_pages(stubbed):
    stubber, client = stubbed
    stubber.add_response(
        "list_objects_v2",
        {
            "Contents": [{"Key": "a", "Size": 1}, {"Key": "b", "Size": 2}],
            "IsTruncated": True,
            "NextContinuationToken": "t1",
        },
        {"Bucket": "bk", "Prefix": ""},
    )

    # Cap of 1 consumes one item plus one probe, all from the first page
    result = bound_items(client.iter_objects("bk"), 1)

    assert [o["name"] for o in result.items] == ["a"]
    assert result.truncated is True


def test_iter_objects_follows_pagination(stubbed):
    stubber, client = stubbed
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "a", "Size": 1}], "IsTruncated": True, "NextContinuationToken": "t1"},
        {"Bucket": "bk", "Prefix": "p"},
    )
    stubber.add_response(
        "list_objects_v2",
        {"Contents": [{"Key": "b", "Size": 2}], "IsTruncated": False},
        {"Bucket": "bk", "Prefix": "p", "ContinuationToken": "t1"},
    )

    names = [o["name"] for o in client.iter_objects("bk", "p")]

    assert names == ["a", "b"]


def test_iter_objects_error_mapped(stubbed):
    stubber, client = stubbed
    stubber.add_client_error("list_objects_v2", service_error_code="NoSuchBucket")

    with pytest.raises(StorageError, match="NoSuchBucket"):
        list(client.iter_objects("gone"))


def test_copy_object_uses_version_in_copy_source(stubbed):
    stubber, client = stubbed
    stubber.add_response(
        "copy_object",
        {},
        {
            "Bucket": "dst",
            "Key": "k2",
            "CopySource": {"Bucket": "src", "Key": "k", "VersionId": "v9"},
        },
    )

    client.copy_object("src", "k", "dst", "k2", "v9")


def test_remove_objects_reports_failures(stubbed):
    stubber, client = stubbed
    stubber.add_response(
        "delete_objects",
        {"Errors": [{"Key": "k1", "Code": "AccessDenied", "Message": "denied"}]},
        {"Bucket": "b", "Delete": {"Objects": [{"Key": "k1"}, {"Key": "k2"}], "Quiet": True}},
    )

    with pytest.raises(StorageError) as exc:
        client.remove_objects("b", ["k1", "k2"])

    assert exc.value.code == "AccessDenied"
    assert exc.value.data["failed_keys"] == ["k1"]


def test_bucket_tags(stubbed):
    stubber, client = stubbed
    stubber.add_response(
        "put_bucket_tagging",
        {},
        {"Bucket": "b", "Tagging": {"TagSet": [{"Key": "env", "Value": "prod"}]}},
    )
    stubber.add_response("get_bucket_tagging", {"TagSet": [{"Key": "env", "Value": "prod"}]})

    client.set_bucket_tags("b", {"env": "prod"})
    assert client.get_bucket_tags("b") == {"env": "prod"}


def test_versioning_strips_response_metadata(stubbed):
    stubber, client = stubbed
    stubber.add_response("get_bucket_versioning", {"Status": "Enabled"}, {"Bucket": "b"})

    assert client.get_bucket_versioning("b") == {"Status": "Enabled"}


def test_make_bucket_location_constraint(stubbed):
    stubber, client = stubbed
    stubber.add_response("create_bucket", {}, {"Bucket": "plain"})
    stubber.add_response(
        "create_bucket",
        {},
        {"Bucket": "eu", "CreateBucketConfiguration": {"LocationConstraint": "eu-west-1"}},
    )

    client.make_bucket("plain", "us-east-1")
    client.make_bucket("eu", "eu-west-1")


def test_create_storage_client_endpoint():
    config = McpStorageConfig(endpoint="localhost:9000", use_ssl=False, access_key="k", secret_key="s")

    client = create_storage_client(config)

    assert client._s3.meta.endpoint_url == "http://localhost:9000"
    assert client._s3.meta.region_name == "us-east-1"
