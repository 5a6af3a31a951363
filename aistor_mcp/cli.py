"""CLI for running and inspecting the AIStor MCP server."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from rich.console import Console
from rich.table import Table
import typer

app = typer.Typer(
    name="aistor-mcp",
    help="AIStor MCP Server CLI",
    add_completion=False,
)
console = Console()
# stdout belongs to the stdio MCP channel while serving
err_console = Console(stderr=True)

logger = logging.getLogger("aistor_mcp.cli")

ConfigOption = typer.Option(None, "--config", "-c", help="Path to aistor.toml config file")
AllowWriteOption = typer.Option(False, "--allow-write", help="Enable write operations")
AllowDeleteOption = typer.Option(False, "--allow-delete", help="Enable delete operations")
AllowAdminOption = typer.Option(False, "--allow-admin", help="Enable admin operations")


def _permission_overrides(allow_write: bool, allow_delete: bool, allow_admin: bool) -> dict[str, Any]:
    # An absent flag leaves ENV/TOML in charge
    return {
        "permissions.allow_write": True if allow_write else None,
        "permissions.allow_delete": True if allow_delete else None,
        "permissions.allow_admin": True if allow_admin else None,
    }


def _load(config: str | None, overrides: dict[str, Any]):
    from aistor_mcp.config import load_config

    try:
        return load_config(config, overrides)
    except ValueError as e:
        err_console.print(f"[red]✗[/] Invalid configuration: {e}")
        raise typer.Exit(2) from e


@app.command()
def serve(
    config: str | None = ConfigOption,
    allow_write: bool = AllowWriteOption,
    allow_delete: bool = AllowDeleteOption,
    allow_admin: bool = AllowAdminOption,
    allowed_directories: str | None = typer.Option(
        None, "--allowed-directories", help="Comma-separated local directories tools may use"
    ),
    max_keys: int | None = typer.Option(None, "--max-keys", help="Cap on items per listing"),
    http: bool = typer.Option(False, "--http", help="Serve JSON-RPC over HTTP instead of stdio"),
    host: str | None = typer.Option(None, "--host", "-H", help="Bind address (HTTP mode)"),
    port: int | None = typer.Option(None, "--port", "-p", help="HTTP port"),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Log level (debug, info, warning, error)"
    ),
) -> None:
    """Run the MCP server over stdio (default) or HTTP."""
    from aistor_mcp.observability import setup_logging
    from aistor_mcp.server import AistorMcpServer
    from aistor_mcp.transport import MCPHttpServer

    overrides = _permission_overrides(allow_write, allow_delete, allow_admin)
    overrides.update(
        {
            "tools.allowed_directories": (
                [d.strip() for d in allowed_directories.split(",") if d.strip()]
                if allowed_directories
                else None
            ),
            "tools.max_keys": max_keys,
            "server.transport": "http" if http else None,
            "server.host": host,
            "server.port": port,
            "server.log_level": log_level,
        }
    )
    cfg = _load(config, overrides)
    setup_logging(cfg.observability, level_name=cfg.server.log_level)

    mcp_server = AistorMcpServer(cfg)
    try:
        if cfg.server.transport == "http":
            err_console.print(
                f"[green]✓[/] MCP server running on "
                f"http://{cfg.server.host}:{cfg.server.port}{cfg.server.endpoint_path}"
            )
            MCPHttpServer(mcp_server, cfg).run()
        else:
            asyncio.run(mcp_server.run())
    except KeyboardInterrupt:
        logger.info("Shutting down AIStor MCP server")


@app.command()
def tools(
    config: str | None = ConfigOption,
    allow_write: bool = AllowWriteOption,
    allow_delete: bool = AllowDeleteOption,
    allow_admin: bool = AllowAdminOption,
) -> None:
    """Show the tools that would be advertised."""
    from aistor_mcp.permissions import Capabilities
    from aistor_mcp.tools import build_registry

    cfg = _load(config, _permission_overrides(allow_write, allow_delete, allow_admin))
    registry = build_registry()
    advertised = registry.list(Capabilities.from_config(cfg.permissions))

    table = Table(title=f"AIStor MCP tools ({len(advertised)} of {len(registry)} enabled)")
    table.add_column("Tool", style="bold")
    table.add_column("Tier")
    table.add_column("Required")
    for descriptor in advertised:
        table.add_row(
            descriptor.name,
            descriptor.tier.value,
            ", ".join(descriptor.required_params) or "-",
        )
    console.print(table)


@app.command(name="show-config")
def show_config(config: str | None = ConfigOption) -> None:
    """Display the effective configuration (secrets masked)."""
    cfg = _load(config, {})
    console.print_json(json.dumps(cfg.redacted()))


if __name__ == "__main__":
    app()
