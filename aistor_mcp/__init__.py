"""AIStor MCP Server - capability-gated object storage tools for MCP clients."""

__version__ = "1.0.0"
