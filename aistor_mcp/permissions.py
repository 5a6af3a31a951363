"""Capability tiers and the permission gate."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from aistor_mcp.errors import PermissionDeniedError

if TYPE_CHECKING:
    from aistor_mcp.config import McpPermissionsConfig
    from aistor_mcp.registry import OperationDescriptor


class Tier(str, Enum):
    """
    Capability an operation requires.

    Tiers are independent flags, not a ladder: admin does not imply delete
    and delete does not imply write. Declaration order is the advertising
    order of tools.
    """

    PUBLIC = "public"
    WRITE = "write"
    DELETE = "delete"
    ADMIN = "admin"


TIER_ORDER: tuple[Tier, ...] = (Tier.PUBLIC, Tier.WRITE, Tier.DELETE, Tier.ADMIN)

_DENIED_MESSAGES = {
    Tier.WRITE: "Write operations are not enabled. Add --allow-write flag to enable.",
    Tier.DELETE: "Delete operations are not enabled. Add --allow-delete flag to enable.",
    Tier.ADMIN: "Admin operations are not enabled. Add --allow-admin flag to enable.",
}


@dataclass(frozen=True)
class Capabilities:
    """Process-wide capability set, fixed at startup."""

    allow_write: bool = False
    allow_delete: bool = False
    allow_admin: bool = False

    @classmethod
    def from_config(cls, config: McpPermissionsConfig) -> Capabilities:
        return cls(
            allow_write=config.allow_write,
            allow_delete=config.allow_delete,
            allow_admin=config.allow_admin,
        )

    def allows(self, tier: Tier) -> bool:
        if tier is Tier.PUBLIC:
            return True
        if tier is Tier.WRITE:
            return self.allow_write
        if tier is Tier.DELETE:
            return self.allow_delete
        if tier is Tier.ADMIN:
            return self.allow_admin
        return False

    def features(self) -> dict[str, bool]:
        """Feature flags as reported by /health and get_admin_info."""
        return {
            "writeEnabled": self.allow_write,
            "deleteEnabled": self.allow_delete,
            "adminEnabled": self.allow_admin,
        }


def authorize(descriptor: OperationDescriptor, capabilities: Capabilities) -> None:
    """
    Check that ``capabilities`` satisfies the descriptor's tier.

    Raises:
        PermissionDeniedError: If the required tier is not enabled
    """
    if capabilities.allows(descriptor.tier):
        return
    raise PermissionDeniedError(descriptor.tier.value, _DENIED_MESSAGES[descriptor.tier])
