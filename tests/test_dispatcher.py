"""Tests for the Dispatcher: lookup, gate, parameter check, error wrapping."""

import csv

import pytest

from aistor_mcp.config import McpObservabilityConfig
from aistor_mcp.dispatcher import Dispatcher
from aistor_mcp.errors import StorageError
from aistor_mcp.observability import ObservabilityContext
from aistor_mcp.permissions import Tier
from aistor_mcp.registry import OperationDescriptor, OperationRegistry, ParamSpec
from aistor_mcp.results import text_result
from aistor_mcp.tools import build_registry
from tests.fakes import make_context


class RecordingHandler:
    def __init__(self, exc=None):
        self.calls = []
        self.exc = exc

    def __call__(self, ctx, args):
        self.calls.append(args)
        if self.exc is not None:
            raise self.exc
        return text_result(f"ok {args.get('bucket')}")


def _registry(handler, tier=Tier.PUBLIC):
    return OperationRegistry(
        [
            OperationDescriptor(
                name="probe",
                tier=tier,
                description="probe",
                params=(ParamSpec("bucket", "string", "bucket", required=True),),
                handler=handler,
            )
        ]
    )


@pytest.mark.asyncio
async def test_success_passes_result_through(storage, sandbox):
    handler = RecordingHandler()
    dispatcher = Dispatcher(_registry(handler), make_context(storage, sandbox))

    result = await dispatcher.dispatch("probe", {"bucket": "b1"})

    assert result.ok
    assert result.content[0].text == "ok b1"
    assert handler.calls == [{"bucket": "b1"}]


@pytest.mark.asyncio
async def test_unknown_operation(dispatcher):
    result = await dispatcher.dispatch("no_such_tool", {})

    assert not result.ok
    assert result.error.kind == "unknown_operation"
    assert result.message == "Unknown tool: no_such_tool"


@pytest.mark.asyncio
@pytest.mark.parametrize("tier", [Tier.WRITE, Tier.DELETE, Tier.ADMIN])
async def test_permission_denied_never_calls_handler(storage, sandbox, tier):
    handler = RecordingHandler()
    dispatcher = Dispatcher(_registry(handler, tier), make_context(storage, sandbox))

    result = await dispatcher.dispatch("probe", {"bucket": "b1"})

    assert not result.ok
    assert result.error.kind == "permission_denied"
    assert handler.calls == []


@pytest.mark.asyncio
async def test_create_bucket_denied_without_write(storage, sandbox):
    dispatcher = Dispatcher(build_registry(), make_context(storage, sandbox))

    result = await dispatcher.dispatch("create_bucket", {"bucket": "new"})

    assert not result.ok
    assert "Write operations are not enabled" in result.message
    assert "make_bucket" not in storage.calls
    assert "new" not in storage.buckets


@pytest.mark.asyncio
@pytest.mark.parametrize("args", [{}, {"bucket": None}, None])
async def test_missing_parameter_never_calls_handler(storage, sandbox, args):
    handler = RecordingHandler()
    dispatcher = Dispatcher(_registry(handler), make_context(storage, sandbox))

    result = await dispatcher.dispatch("probe", args)

    assert not result.ok
    assert result.error.kind == "missing_parameter"
    assert result.message == "Missing required parameter: bucket"
    assert handler.calls == []


@pytest.mark.asyncio
async def test_permission_checked_before_parameters(storage, sandbox):
    handler = RecordingHandler()
    dispatcher = Dispatcher(_registry(handler, Tier.ADMIN), make_context(storage, sandbox))

    result = await dispatcher.dispatch("probe", {})

    assert result.error.kind == "permission_denied"


@pytest.mark.asyncio
async def test_storage_error_becomes_failure(storage, sandbox):
    handler = RecordingHandler(StorageError("NoSuchBucket: gone", code="NoSuchBucket"))
    dispatcher = Dispatcher(_registry(handler), make_context(storage, sandbox))

    result = await dispatcher.dispatch("probe", {"bucket": "b1"})

    assert not result.ok
    assert result.error.kind == "storage_error"
    assert result.error.data["code"] == "NoSuchBucket"


@pytest.mark.asyncio
async def test_unexpected_exception_wrapped(storage, sandbox):
    handler = RecordingHandler(KeyError("boom"))
    dispatcher = Dispatcher(_registry(handler), make_context(storage, sandbox))

    result = await dispatcher.dispatch("probe", {"bucket": "b1"})

    assert not result.ok
    assert result.error.kind == "handler_error"
    assert result.error.data["exception"] == "KeyError"


@pytest.mark.asyncio
async def test_records_metrics_and_audit(storage, sandbox, tmp_path):
    csv_path = tmp_path / "audit" / "calls.csv"
    obs = ObservabilityContext(
        McpObservabilityConfig(enabled=True, csv_audit_enabled=True, csv_path=str(csv_path))
    )
    dispatcher = Dispatcher(build_registry(), make_context(storage, sandbox), obs)

    await dispatcher.dispatch("list_buckets", {}, correlation_id="abc12345")
    await dispatcher.dispatch("create_bucket", {"bucket": "x"}, correlation_id="def67890")

    stats = obs.get_stats()
    assert stats["total_requests"] == 2
    assert stats["total_errors"] == 1
    assert stats["tools"]["create_bucket"]["denied"] == 1

    with open(csv_path, newline="") as f:
        rows = list(csv.DictReader(f))
    assert [r["correlation_id"] for r in rows] == ["abc12345", "def67890"]
    assert rows[0]["status"] == "ok"
    assert rows[1]["tier"] == "write"
    assert rows[1]["error_kind"] == "permission_denied"
