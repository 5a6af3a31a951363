"""
Tests for the stateless HTTP JSON-RPC transport.

Uses Starlette's TestClient against the real app with the in-memory storage.
"""

from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from aistor_mcp.server import AistorMcpServer
from aistor_mcp.transport.http_server import MCPHttpServer
from tests.fakes import make_config


@pytest.fixture
def make_client(storage, sandbox):
    def _make(**options):
        metrics = options.pop("metrics", False)
        config = make_config(sandbox, **options)
        if metrics:
            config.observability.enabled = True
            config.observability.metrics_enabled = True
        mcp_server = AistorMcpServer(config, storage=storage)
        return TestClient(MCPHttpServer(mcp_server, config).app)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


def _rpc(client, method, params=None, request_id=1):
    payload = {"jsonrpc": "2.0", "method": method, "id": request_id}
    if params is not None:
        payload["params"] = params
    return client.post("/mcp", json=payload)


def _assert_cors(response):
    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"


class TestMCPHttpServerConfiguration:
    """Test server configuration handling (no TestClient needed)."""

    def test_uses_config_host_and_port(self, sandbox):
        config = make_config(sandbox)
        config.server.host = "127.0.0.1"
        config.server.port = 9999

        http = MCPHttpServer(Mock(), config)

        assert http.host == "127.0.0.1"
        assert http.port == 9999

    def test_init_overrides_config(self, sandbox):
        http = MCPHttpServer(Mock(), make_config(sandbox), host="192.168.1.1", port=3000)

        assert http.host == "192.168.1.1"
        assert http.port == 3000


class TestEndpoints:
    def test_health(self, make_client):
        response = make_client(allow_write=True).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "aistor-mcp-server"
        assert body["endpoint"] == "/mcp"
        assert body["features"] == {
            "writeEnabled": True,
            "deleteEnabled": False,
            "adminEnabled": False,
        }

    def test_get_handshake(self, client, storage):
        response = client.get("/mcp")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == 1
        assert body["result"]["protocolVersion"] == "2025-06-18"
        assert body["result"]["serverInfo"]["name"] == "aistor-mcp-server"
        assert storage.calls == []

    def test_unknown_path(self, client):
        response = client.get("/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_wrong_method(self, client):
        response = client.delete("/health")
        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}

    @pytest.mark.parametrize("origin", [None, "http://example.com"])
    def test_cors_headers(self, client, origin):
        headers = {"Origin": origin} if origin else {}

        response = client.get("/health", headers=headers)

        _assert_cors(response)

    def test_cors_on_parse_error(self, client):
        response = client.post("/mcp", content=b"{bad")

        assert response.status_code == 400
        _assert_cors(response)

    def test_cors_on_not_found(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        _assert_cors(response)

    @pytest.mark.parametrize("path", ["/mcp", "/health", "/anything"])
    def test_options_any_path(self, client, storage, path):
        response = client.options(path)

        assert response.status_code == 200
        assert response.content == b""
        _assert_cors(response)
        assert storage.calls == []

    def test_metrics_route_only_when_enabled(self, make_client):
        assert make_client().get("/metrics").status_code == 404

        client = make_client(metrics=True)
        _rpc(client, "tools/call", {"name": "list_buckets", "arguments": {}})
        stats = client.get("/metrics").json()
        assert stats["tools"]["list_buckets"]["calls"] == 1


class TestJsonRpc:
    def test_malformed_json(self, client):
        response = client.post(
            "/mcp", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"]["code"] == -32700
        assert body["error"]["data"]["kind"] == "malformed_request"
        assert body["id"] is None

    @pytest.mark.parametrize("payload", [[1, 2], {"jsonrpc": "2.0", "id": 4}, "text"])
    def test_invalid_request(self, client, payload):
        response = client.post("/mcp", json=payload)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == -32600

    def test_unknown_method(self, client):
        response = _rpc(client, "resources/list", request_id=7)

        assert response.status_code == 200
        body = response.json()
        assert body["error"]["code"] == -32601
        assert body["id"] == 7

    @pytest.mark.parametrize("method", ["initialized", "notifications/initialized", "ping"])
    def test_acknowledgements(self, client, method):
        body = _rpc(client, method).json()
        assert body["result"] == {}

    def test_initialize(self, client):
        body = _rpc(client, "initialize", {"protocolVersion": "2025-06-18"}).json()
        assert body["result"]["capabilities"] == {"tools": {}}

    def test_tools_list_filtered(self, make_client):
        public = _rpc(make_client(), "tools/list").json()["result"]["tools"]
        admin = _rpc(make_client(allow_admin=True), "tools/list").json()["result"]["tools"]

        public_names = [t["name"] for t in public]
        admin_names = [t["name"] for t in admin]
        assert "get_admin_info" not in public_names
        assert admin_names[: len(public_names)] == public_names
        assert "get_admin_info" in admin_names
        assert "inputSchema" in public[0]

    def test_tools_call_success(self, client, storage):
        storage.add_bucket("alpha")

        body = _rpc(client, "tools/call", {"name": "list_buckets", "arguments": {}}).json()

        content = body["result"]["content"]
        assert content[0]["type"] == "text"
        assert '"alpha"' in content[0]["text"]

    def test_tools_call_unknown_tool(self, client):
        response = _rpc(client, "tools/call", {"name": "nope", "arguments": {}})

        assert response.status_code == 200
        error = response.json()["error"]
        assert "Unknown tool: nope" in error["message"]
        assert error["data"]["kind"] == "unknown_operation"

    def test_tools_call_permission_denied(self, client, storage):
        response = _rpc(client, "tools/call", {"name": "create_bucket", "arguments": {"bucket": "x"}})

        error = response.json()["error"]
        assert response.status_code == 200
        assert error["code"] == -32001
        assert error["data"]["tool"] == "create_bucket"
        assert "x" not in storage.buckets

    def test_tools_call_missing_name(self, client):
        body = _rpc(client, "tools/call", {"arguments": {}}).json()
        assert body["error"]["code"] == -32602

    def test_tools_call_storage_error(self, client):
        body = _rpc(
            client, "tools/call", {"name": "list_bucket_contents", "arguments": {"bucket": "gone"}}
        ).json()

        assert body["error"]["code"] == -32003
        assert body["error"]["data"]["code"] == "NoSuchBucket"
