"""
Error types for the AIStor MCP server.

Every failure a handler or the dispatcher can surface is an AistorMcpError
carrying a stable ``kind`` string, a JSON-RPC code for the HTTP transport and
an optional ``data`` mapping with structured detail.
"""

from __future__ import annotations

from typing import Any


class AistorMcpError(Exception):
    """Base error for dispatcher and handler failures."""

    kind: str = "internal_error"
    rpc_code: int = -32603

    def __init__(self, message: str, **data: Any):
        super().__init__(message)
        self.message = message
        self.data: dict[str, Any] = data

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.data}


class UnknownOperationError(AistorMcpError):
    """No operation with the requested name is registered."""

    kind = "unknown_operation"
    rpc_code = -32602

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}", name=name)


class PermissionDeniedError(AistorMcpError):
    """The capability set lacks the tier an operation requires."""

    kind = "permission_denied"
    rpc_code = -32001

    def __init__(self, tier: str, message: str):
        super().__init__(message, tier=tier)
        self.tier = tier


class MissingParameterError(AistorMcpError):
    """A required operation parameter was absent or null."""

    kind = "missing_parameter"
    rpc_code = -32602

    def __init__(self, param: str):
        super().__init__(f"Missing required parameter: {param}", param=param)
        self.param = param


class PathNotAllowedError(AistorMcpError):
    """Local path falls outside the allowed directories or is unsafe."""

    kind = "path_not_allowed"
    rpc_code = -32002


class StorageError(AistorMcpError):
    """Failure reported by the remote object store."""

    kind = "storage_error"
    rpc_code = -32003

    def __init__(self, message: str, *, code: str | None = None, **data: Any):
        super().__init__(message, code=code, **data)
        self.code = code


class PartialMoveError(StorageError):
    """Copy half of a move succeeded, delete half failed."""

    kind = "partial_failure"


class HandlerError(AistorMcpError):
    """Unexpected exception raised inside an operation handler."""

    kind = "handler_error"
    rpc_code = -32603


class MalformedRequestError(AistorMcpError):
    """Transport-level request could not be parsed."""

    kind = "malformed_request"
    rpc_code = -32700
