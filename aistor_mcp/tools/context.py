"""Read-only state handed to every operation handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from aistor_mcp.permissions import Capabilities

if TYPE_CHECKING:
    from aistor_mcp.config import McpConfig
    from aistor_mcp.storage import StorageClient


@dataclass(frozen=True)
class OperationContext:
    """Immutable per-process settings plus the storage collaborator."""

    storage: StorageClient
    capabilities: Capabilities
    allowed_directories: tuple[str, ...]
    max_keys: int = 1000
    presign_max_expiry: int = 604800
    endpoint: str = ""
    use_ssl: bool = True

    @classmethod
    def from_config(cls, config: McpConfig, storage: StorageClient) -> OperationContext:
        return cls(
            storage=storage,
            capabilities=Capabilities.from_config(config.permissions),
            allowed_directories=tuple(config.tools.allowed_directories),
            max_keys=config.tools.max_keys,
            presign_max_expiry=config.tools.presign_max_expiry,
            endpoint=config.storage.endpoint,
            use_ssl=config.storage.use_ssl,
        )
