"""
Dispatcher - the single entry point both transports call.

Resolves an operation name through the registry, applies the capability
gate and required-parameter check, then runs the handler in a worker thread
so blocking storage I/O never stalls the event loop.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from starlette.concurrency import run_in_threadpool

from aistor_mcp.errors import (
    AistorMcpError,
    HandlerError,
    MissingParameterError,
    UnknownOperationError,
)
from aistor_mcp.observability import ObservabilityContext, generate_correlation_id
from aistor_mcp.permissions import authorize
from aistor_mcp.registry import OperationDescriptor, OperationRegistry
from aistor_mcp.results import DispatchResult, ToolFailure
from aistor_mcp.tools.context import OperationContext

logger = logging.getLogger("aistor_mcp.dispatcher")


class Dispatcher:
    """Route ``(name, args)`` to a registered handler and wrap the outcome."""

    def __init__(
        self,
        registry: OperationRegistry,
        context: OperationContext,
        obs: ObservabilityContext | None = None,
    ):
        self.registry = registry
        self.context = context
        self.obs = obs

    def list_operations(self) -> list[OperationDescriptor]:
        """Operations callable under the configured capabilities."""
        return self.registry.list(self.context.capabilities)

    async def dispatch(
        self,
        name: str,
        args: dict[str, Any] | None,
        correlation_id: str | None = None,
    ) -> DispatchResult:
        """
        Execute one operation.

        Never raises for operation failures: every error, including
        unexpected handler exceptions, comes back as a ToolFailure.
        """
        cid = correlation_id or generate_correlation_id()
        args = args or {}
        start_time = time.time()
        descriptor = self.registry.lookup(name)
        tier = descriptor.tier.value if descriptor else ""

        logger.info(
            f"dispatch: {name}",
            extra={"correlation_id": cid, "tool": name, "tier": tier},
        )

        try:
            if descriptor is None:
                raise UnknownOperationError(name)
            result = await self._invoke(descriptor, args)
        except AistorMcpError as e:
            result = ToolFailure(error=e)
        except Exception as e:
            logger.exception(
                f"Tool {name} failed: {e}",
                extra={"correlation_id": cid, "tool": name},
            )
            result = ToolFailure(
                error=HandlerError(str(e) or type(e).__name__, exception=type(e).__name__)
            )

        latency_ms = (time.time() - start_time) * 1000
        error_kind = None if result.ok else result.error.kind

        if self.obs is not None:
            self.obs.record(
                correlation_id=cid,
                tool=name,
                tier=tier,
                latency_ms=latency_ms,
                success=result.ok,
                error_kind=error_kind,
            )

        log_extra = {
            "correlation_id": cid,
            "tool": name,
            "latency_ms": round(latency_ms, 2),
            "status": "ok" if result.ok else "error",
        }
        if result.ok:
            logger.info(f"dispatch done: {name}", extra=log_extra)
        else:
            log_extra["error"] = result.message
            logger.warning(f"dispatch failed: {name} ({error_kind})", extra=log_extra)

        return result

    async def _invoke(
        self, descriptor: OperationDescriptor, args: dict[str, Any]
    ) -> DispatchResult:
        authorize(descriptor, self.context.capabilities)

        for param in descriptor.required_params:
            if args.get(param) is None:
                raise MissingParameterError(param)

        return await run_in_threadpool(descriptor.handler, self.context, args)
