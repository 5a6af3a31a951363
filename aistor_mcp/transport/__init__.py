"""Transport adapters for the AIStor MCP server."""

from aistor_mcp.transport.http_server import MCPHttpServer  # noqa: F401
from aistor_mcp.transport.jsonrpc import JsonRpcHandler  # noqa: F401
