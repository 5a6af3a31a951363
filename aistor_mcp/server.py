#!/usr/bin/env python3
"""
AIStor MCP Server - capability-gated object storage tools over MCP.

Exposes the operation registry to an MCP client over stdio. Every call goes
through the shared Dispatcher, the same one the HTTP transport uses.
"""

from __future__ import annotations

import asyncio
import logging

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from aistor_mcp import __version__
from aistor_mcp.config import McpConfig, load_config
from aistor_mcp.dispatcher import Dispatcher
from aistor_mcp.observability import ObservabilityContext, setup_logging
from aistor_mcp.registry import OperationRegistry, tool_schema
from aistor_mcp.storage import StorageClient, create_storage_client
from aistor_mcp.tools import OperationContext, build_registry

SERVER_NAME = "aistor-mcp-server"
SERVER_VERSION = __version__
PROTOCOL_VERSION = "2025-06-18"

logger = logging.getLogger("aistor_mcp.server")


class AistorMcpServer:
    """AIStor MCP Server with a capability-gated tool catalog."""

    def __init__(
        self,
        config: McpConfig,
        storage: StorageClient | None = None,
        registry: OperationRegistry | None = None,
    ):
        """
        Build the dispatcher stack.

        Args:
            config: Effective server configuration
            storage: Storage collaborator (default: boto3 client from config)
            registry: Operation registry (default: the full catalog)
        """
        self.config = config
        self.obs = ObservabilityContext(config.observability)
        self.registry = registry or build_registry()
        self.context = OperationContext.from_config(
            config, storage or create_storage_client(config.storage)
        )
        self.dispatcher = Dispatcher(self.registry, self.context, self.obs)

        self.server = Server(SERVER_NAME, version=SERVER_VERSION)
        # One request in flight per stdio channel
        self._call_lock = asyncio.Lock()
        self._register_handlers()

        logger.info(
            f"AIStor MCP server initialized with {len(self.tools)} of "
            f"{len(self.registry)} tools enabled"
        )

    @property
    def tools(self) -> list[Tool]:
        """Tool definitions advertised under the configured capabilities."""
        return [Tool(**tool_schema(d)) for d in self.dispatcher.list_operations()]

    def _register_handlers(self):
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            """Return available tools."""
            logger.debug("list_tools called")
            return self.tools

        # Parameter checks belong to the dispatcher so both transports agree
        @self.server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict | None) -> list[TextContent]:
            """Handle tool invocation."""
            return await self.call_tool(name, arguments)

    async def call_tool(self, name: str, arguments: dict | None) -> list[TextContent]:
        """
        Dispatch one call and render it as MCP content.

        Failures are rendered as an ordinary text block so the client sees
        the message rather than a protocol error.
        """
        async with self._call_lock:
            result = await self.dispatcher.dispatch(name, arguments)

        if result.ok:
            return [TextContent(type="text", text=block.text) for block in result.content]
        return [TextContent(type="text", text=f"Error executing {name}: {result.message}")]

    async def run(self):
        """Run the server with stdio transport."""
        logger.info("Starting AIStor MCP server (stdio transport)")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def main(config_path: str | None = None) -> None:
    """Run the stdio server with configuration from file and environment."""
    config = load_config(config_path)
    setup_logging(config.observability, level_name=config.server.log_level)

    server = AistorMcpServer(config)
    try:
        asyncio.run(server.run())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")


if __name__ == "__main__":
    main()
