"""AIStor MCP tools - operation handlers, catalog and local filesystem sandbox."""

from aistor_mcp.tools.catalog import OPERATIONS, build_registry  # noqa: F401
from aistor_mcp.tools.context import OperationContext  # noqa: F401
from aistor_mcp.tools.fs import (  # noqa: F401
    check_path_allowed,
    list_local_files,
    normalize_path,
    validate_path,
)
