"""
Stateless JSON-RPC 2.0 handling for the HTTP transport.

Each POST body is one request, answered independently. Protocol failures map
to the standard JSON-RPC codes; tool failures carry the error's own code and
a ``data`` object describing what went wrong.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from aistor_mcp.dispatcher import Dispatcher
from aistor_mcp.errors import MalformedRequestError
from aistor_mcp.observability import generate_correlation_id
from aistor_mcp.registry import tool_schema
from aistor_mcp.server import PROTOCOL_VERSION, SERVER_NAME, SERVER_VERSION

logger = logging.getLogger("aistor_mcp.transport.jsonrpc")

JSONRPC_VERSION = "2.0"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def handshake_result() -> dict[str, Any]:
    """Result of ``initialize`` and of the GET handshake."""
    return {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {"tools": {}},
        "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
    }


def rpc_result(result: Any, request_id: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "result": result, "id": request_id}


def rpc_error(
    code: int, message: str, request_id: Any = None, data: dict[str, Any] | None = None
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "error": error, "id": request_id}


class JsonRpcHandler:
    """Translate JSON-RPC requests into Dispatcher calls."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        self._methods = {
            "initialize": self._initialize,
            "initialized": self._ack,
            "notifications/initialized": self._ack,
            "ping": self._ack,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    async def handle_body(self, body: bytes) -> tuple[int, dict[str, Any]]:
        """
        Handle one raw request body.

        Returns:
            (http_status, response_document)
        """
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            error = MalformedRequestError("Parse error", reason=str(e))
            data = {"kind": error.kind, **error.data}
            return 400, rpc_error(error.rpc_code, error.message, data=data)
        return await self.handle(payload)

    async def handle(self, payload: Any) -> tuple[int, dict[str, Any]]:
        """Handle one decoded request document."""
        if not isinstance(payload, dict) or not isinstance(payload.get("method"), str):
            request_id = payload.get("id") if isinstance(payload, dict) else None
            return 400, rpc_error(INVALID_REQUEST, "Invalid Request", request_id)

        method = payload["method"]
        request_id = payload.get("id")
        params = payload.get("params") or {}

        handler = self._methods.get(method)
        if handler is None:
            return 200, rpc_error(METHOD_NOT_FOUND, f"Method not found: {method}", request_id)

        try:
            return 200, await handler(params, request_id)
        except Exception as e:
            logger.exception(f"JSON-RPC method {method} failed: {e}")
            return 200, rpc_error(INTERNAL_ERROR, f"Internal error: {e}", request_id)

    async def _initialize(self, params: Any, request_id: Any) -> dict[str, Any]:
        return rpc_result(handshake_result(), request_id)

    async def _ack(self, params: Any, request_id: Any) -> dict[str, Any]:
        return rpc_result({}, request_id)

    async def _tools_list(self, params: Any, request_id: Any) -> dict[str, Any]:
        tools = [tool_schema(d) for d in self.dispatcher.list_operations()]
        return rpc_result({"tools": tools}, request_id)

    async def _tools_call(self, params: Any, request_id: Any) -> dict[str, Any]:
        if not isinstance(params, dict) or not isinstance(params.get("name"), str):
            return rpc_error(INVALID_PARAMS, "Invalid params: tool name is required", request_id)

        name = params["name"]
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            return rpc_error(INVALID_PARAMS, "Invalid params: arguments must be an object", request_id)

        result = await self.dispatcher.dispatch(name, arguments, generate_correlation_id())
        if result.ok:
            return rpc_result(result.to_dict(), request_id)

        error = result.error
        return rpc_error(
            error.rpc_code,
            error.message,
            request_id,
            data={"kind": error.kind, "tool": name, **error.data},
        )
