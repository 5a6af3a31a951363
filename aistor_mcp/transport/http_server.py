"""HTTP server with stateless JSON-RPC transport for MCP daemon mode."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from aistor_mcp.server import SERVER_NAME, SERVER_VERSION
from aistor_mcp.transport.cors import PermissiveCorsMiddleware
from aistor_mcp.transport.jsonrpc import JsonRpcHandler, handshake_result, rpc_result

if TYPE_CHECKING:
    from starlette.requests import Request

    from aistor_mcp.config import McpConfig
    from aistor_mcp.server import AistorMcpServer

logger = logging.getLogger(__name__)


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": "Not Found"}, status_code=404)


async def _method_not_allowed(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse({"error": "Method Not Allowed"}, status_code=405)


class MCPHttpServer:
    """
    HTTP server that exposes the tool catalog over stateless JSON-RPC.

    Every POST to the endpoint is one self-contained request; nothing is
    kept between requests, so any number may be in flight at once.

    Example:
        server = MCPHttpServer(mcp_server, config, host="127.0.0.1", port=8080)
        server.run()  # Blocks, serving HTTP
    """

    def __init__(
        self,
        mcp_server: AistorMcpServer,
        config: McpConfig,
        host: str | None = None,
        port: int | None = None,
    ):
        """
        Initialize HTTP server.

        Args:
            mcp_server: The AIStor MCP server whose dispatcher is exposed
            config: MCP configuration
            host: Bind address (default from config)
            port: Port number (default from config)
        """
        self.mcp_server = mcp_server
        self.config = config
        self.host = host or config.server.host
        self.port = port or config.server.port
        self.endpoint_path = config.server.endpoint_path

        self.rpc = JsonRpcHandler(mcp_server.dispatcher)

        # Build Starlette app
        self.app = self._create_app()

        logger.info(f"HTTP server initialized (will bind to {self.host}:{self.port})")

    @property
    def metrics_enabled(self) -> bool:
        obs = self.config.observability
        return obs.enabled and obs.metrics_enabled

    def _create_app(self) -> Starlette:
        """Create the Starlette ASGI application."""
        routes = [
            Route("/health", endpoint=self._health, methods=["GET"]),
            Route(self.endpoint_path, endpoint=self._handshake, methods=["GET"]),
            Route(self.endpoint_path, endpoint=self._handle_rpc, methods=["POST"]),
        ]

        if self.metrics_enabled:
            routes.append(
                Route(self.config.observability.metrics_path, endpoint=self._metrics, methods=["GET"])
            )
            logger.info(f"Metrics exposed at {self.config.observability.metrics_path}")

        # CORS headers on every response, 404/405 included
        middleware = [Middleware(PermissiveCorsMiddleware)]

        return Starlette(
            routes=routes,
            middleware=middleware,
            exception_handlers={404: _not_found, 405: _method_not_allowed},
            lifespan=self._lifespan,
        )

    @asynccontextmanager
    async def _lifespan(self, app: Starlette):
        logger.info("HTTP server starting up")
        yield
        logger.info("HTTP server shutting down")

    async def _health(self, request: Request) -> JSONResponse:
        """
        Health check endpoint.

        Returns:
            {"status": "healthy", "service", "version", "endpoint", "features"}
        """
        return JSONResponse(
            {
                "status": "healthy",
                "service": SERVER_NAME,
                "version": SERVER_VERSION,
                "endpoint": self.endpoint_path,
                "features": self.mcp_server.context.capabilities.features(),
            }
        )

    async def _handshake(self, request: Request) -> JSONResponse:
        """GET on the endpoint answers with the handshake, no dispatch."""
        return JSONResponse(rpc_result(handshake_result(), 1))

    async def _handle_rpc(self, request: Request) -> JSONResponse:
        body = await request.body()
        status, document = await self.rpc.handle_body(body)
        return JSONResponse(document, status_code=status)

    async def _metrics(self, request: Request) -> JSONResponse:
        return JSONResponse(self.mcp_server.obs.get_stats())

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """
        Run the HTTP server (blocks).

        Args:
            host: Override bind address
            port: Override port number
        """
        import uvicorn

        bind_host = host or self.host
        bind_port = port or self.port

        logger.info(f"Starting HTTP server on {bind_host}:{bind_port}{self.endpoint_path}")

        uvicorn.run(
            self.app,
            host=bind_host,
            port=bind_port,
            log_level=self.config.server.log_level,
        )
