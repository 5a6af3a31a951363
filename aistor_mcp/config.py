"""MCP configuration loader - reads from aistor.toml with ENV and CLI overrides."""  # noqa: I001

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import tomllib
from typing import Any, cast

_TRUE_VALUES = ("1", "true", "yes")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in _TRUE_VALUES


@dataclass
class McpServerConfig:
    """Server transport settings."""

    transport: str = "stdio"
    host: str = "0.0.0.0"
    port: int = 8080
    endpoint_path: str = "/mcp"
    log_level: str = "info"

    def validate(self) -> None:
        if self.transport not in ("stdio", "http"):
            raise ValueError(f"Invalid transport: {self.transport}")
        if not (1 <= self.port <= 65535):
            raise ValueError(f"Invalid port: {self.port}")
        if not self.endpoint_path.startswith("/") or self.endpoint_path == "/health":
            raise ValueError(f"Invalid endpoint path: {self.endpoint_path}")


@dataclass
class McpStorageConfig:
    """Object store connection settings."""

    endpoint: str = "play.min.io"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = True
    region: str = "us-east-1"
    max_attempts: int = 3

    @property
    def endpoint_url(self) -> str:
        if "://" in self.endpoint:
            return self.endpoint
        scheme = "https" if self.use_ssl else "http"
        return f"{scheme}://{self.endpoint}"

    def validate(self) -> None:
        if not self.endpoint:
            raise ValueError("storage endpoint must not be empty")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")


@dataclass
class McpPermissionsConfig:
    """Capability flags. Each tier is toggled independently."""

    allow_write: bool = False
    allow_delete: bool = False
    allow_admin: bool = False

    def validate(self) -> None:
        pass


@dataclass
class McpToolsConfig:
    """Tool access settings."""

    allowed_directories: list[str] = field(default_factory=lambda: ["/tmp"])
    max_keys: int = 1000
    presign_max_expiry: int = 604800

    def validate(self) -> None:
        if self.max_keys <= 0:
            raise ValueError("max_keys must be positive")
        if self.presign_max_expiry <= 0:
            raise ValueError("presign_max_expiry must be positive")
        if any(not d.strip() for d in self.allowed_directories):
            raise ValueError("allowed_directories must not contain empty entries")


@dataclass
class McpObservabilityConfig:
    """Observability settings."""

    enabled: bool = False
    log_format: str = "json"  # "json" | "text"
    include_correlation_id: bool = True
    # Metrics (HTTP: JSON endpoint at metrics_path)
    metrics_enabled: bool = False
    metrics_path: str = "/metrics"
    # Per-call audit CSV
    csv_audit_enabled: bool = False
    csv_path: str = "./artifacts/call_audit.csv"

    def validate(self) -> None:
        if self.log_format not in ("json", "text"):
            raise ValueError(f"Invalid log_format: {self.log_format}")
        if self.enabled and self.csv_audit_enabled:
            path = Path(self.csv_path)
            if path.exists() and not path.is_file():
                raise ValueError(f"Audit CSV path '{self.csv_path}' exists but is not a file")


@dataclass
class McpConfig:
    """Root MCP configuration."""

    server: McpServerConfig = field(default_factory=McpServerConfig)
    storage: McpStorageConfig = field(default_factory=McpStorageConfig)
    permissions: McpPermissionsConfig = field(default_factory=McpPermissionsConfig)
    tools: McpToolsConfig = field(default_factory=McpToolsConfig)
    observability: McpObservabilityConfig = field(default_factory=McpObservabilityConfig)

    def validate(self) -> None:
        self.server.validate()
        self.storage.validate()
        self.permissions.validate()
        self.tools.validate()
        self.observability.validate()

    def redacted(self) -> dict[str, Any]:
        """Effective settings with credentials masked, for display."""
        return {
            "server": vars(self.server).copy(),
            "storage": {
                **vars(self.storage),
                "access_key": "***" if self.storage.access_key else "",
                "secret_key": "***" if self.storage.secret_key else "",
            },
            "permissions": vars(self.permissions).copy(),
            "tools": vars(self.tools).copy(),
            "observability": vars(self.observability).copy(),
        }


def _split_dirs(value: str) -> list[str]:
    return [d.strip() for d in value.split(",") if d.strip()]


def _table(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name, {})
    if not isinstance(value, dict):
        raise ValueError(f"[{name}] must be a table")
    return value


def _typed(table: dict[str, Any], key: str, current: Any, kind: type) -> Any:
    """Read ``key`` from a TOML table, keeping ``current`` when absent."""
    if key not in table:
        return current
    value = table[key]
    # bool is an int subclass; TOML true is not a port number
    if (kind is int and isinstance(value, bool)) or not isinstance(value, kind):
        raise ValueError(
            f"Invalid type for {key}: expected {kind.__name__}, got {type(value).__name__}"
        )
    return value


def _apply_toml(cfg: McpConfig, data: dict[str, Any]) -> None:
    mcp_data = _table(data, "mcp")

    # Server
    srv = _table(mcp_data, "server")
    cfg.server.transport = _typed(srv, "transport", cfg.server.transport, str)
    cfg.server.host = _typed(srv, "host", cfg.server.host, str)
    cfg.server.port = _typed(srv, "port", cfg.server.port, int)
    cfg.server.endpoint_path = _typed(srv, "endpoint_path", cfg.server.endpoint_path, str)
    cfg.server.log_level = _typed(srv, "log_level", cfg.server.log_level, str)

    # Storage
    storage = _table(mcp_data, "storage")
    cfg.storage.endpoint = _typed(storage, "endpoint", cfg.storage.endpoint, str)
    cfg.storage.access_key = _typed(storage, "access_key", cfg.storage.access_key, str)
    cfg.storage.secret_key = _typed(storage, "secret_key", cfg.storage.secret_key, str)
    cfg.storage.use_ssl = _typed(storage, "use_ssl", cfg.storage.use_ssl, bool)
    cfg.storage.region = _typed(storage, "region", cfg.storage.region, str)
    cfg.storage.max_attempts = _typed(storage, "max_attempts", cfg.storage.max_attempts, int)

    # Permissions
    perms = _table(mcp_data, "permissions")
    cfg.permissions.allow_write = _typed(perms, "allow_write", cfg.permissions.allow_write, bool)
    cfg.permissions.allow_delete = _typed(perms, "allow_delete", cfg.permissions.allow_delete, bool)
    cfg.permissions.allow_admin = _typed(perms, "allow_admin", cfg.permissions.allow_admin, bool)

    # Tools
    tools = _table(mcp_data, "tools")
    dirs = _typed(tools, "allowed_directories", cfg.tools.allowed_directories, list)
    if not all(isinstance(d, str) for d in dirs):
        raise ValueError("allowed_directories must be a list of strings")
    cfg.tools.allowed_directories = dirs
    cfg.tools.max_keys = _typed(tools, "max_keys", cfg.tools.max_keys, int)
    cfg.tools.presign_max_expiry = _typed(
        tools, "presign_max_expiry", cfg.tools.presign_max_expiry, int
    )

    # Observability
    obs = _table(mcp_data, "observability")
    cfg.observability.enabled = _typed(obs, "enabled", cfg.observability.enabled, bool)
    cfg.observability.log_format = _typed(obs, "log_format", cfg.observability.log_format, str)
    cfg.observability.include_correlation_id = _typed(
        obs, "include_correlation_id", cfg.observability.include_correlation_id, bool
    )
    cfg.observability.metrics_enabled = _typed(
        obs, "metrics_enabled", cfg.observability.metrics_enabled, bool
    )
    cfg.observability.metrics_path = _typed(
        obs, "metrics_path", cfg.observability.metrics_path, str
    )
    cfg.observability.csv_audit_enabled = _typed(
        obs, "csv_audit_enabled", cfg.observability.csv_audit_enabled, bool
    )
    cfg.observability.csv_path = _typed(obs, "csv_path", cfg.observability.csv_path, str)


def _apply_env_overrides(cfg: McpConfig) -> McpConfig:
    """Apply environment variable overrides. ENV beats TOML."""
    # Storage connection
    if os.getenv("MINIO_ENDPOINT"):
        cfg.storage.endpoint = os.getenv("MINIO_ENDPOINT", cfg.storage.endpoint)
    if os.getenv("MINIO_ACCESS_KEY"):
        cfg.storage.access_key = os.getenv("MINIO_ACCESS_KEY", cfg.storage.access_key)
    if os.getenv("MINIO_SECRET_KEY"):
        cfg.storage.secret_key = os.getenv("MINIO_SECRET_KEY", cfg.storage.secret_key)
    if os.getenv("MINIO_USE_SSL"):
        cfg.storage.use_ssl = _env_flag("MINIO_USE_SSL")
    if os.getenv("MINIO_REGION"):
        cfg.storage.region = os.getenv("MINIO_REGION", cfg.storage.region)

    # Capability flags
    if os.getenv("ALLOW_WRITE"):
        cfg.permissions.allow_write = _env_flag("ALLOW_WRITE")
    if os.getenv("ALLOW_DELETE"):
        cfg.permissions.allow_delete = _env_flag("ALLOW_DELETE")
    if os.getenv("ALLOW_ADMIN"):
        cfg.permissions.allow_admin = _env_flag("ALLOW_ADMIN")

    # ALLOWED_DIRECTORIES (comma-separated)
    if os.getenv("ALLOWED_DIRECTORIES"):
        cfg.tools.allowed_directories = _split_dirs(os.getenv("ALLOWED_DIRECTORIES", ""))
    if os.getenv("MAX_KEYS"):
        cfg.tools.max_keys = int(os.getenv("MAX_KEYS", "0"))

    # Transport
    if os.getenv("HTTP_MODE"):
        cfg.server.transport = "http" if _env_flag("HTTP_MODE") else "stdio"
    if os.getenv("PORT"):
        cfg.server.port = int(os.getenv("PORT", "0"))
    if os.getenv("AISTOR_MCP_LOG_LEVEL"):
        cfg.server.log_level = os.getenv("AISTOR_MCP_LOG_LEVEL", cfg.server.log_level)

    # Observability overrides
    if os.getenv("AISTOR_MCP_OBS_ENABLED"):
        cfg.observability.enabled = _env_flag("AISTOR_MCP_OBS_ENABLED")
    if os.getenv("AISTOR_MCP_OBS_LOG_FORMAT"):
        cfg.observability.log_format = os.getenv(
            "AISTOR_MCP_OBS_LOG_FORMAT", cfg.observability.log_format
        )
    if os.getenv("AISTOR_MCP_OBS_CSV_ENABLED"):
        cfg.observability.csv_audit_enabled = _env_flag("AISTOR_MCP_OBS_CSV_ENABLED")
    if os.getenv("AISTOR_MCP_OBS_CSV_PATH"):
        cfg.observability.csv_path = os.getenv(
            "AISTOR_MCP_OBS_CSV_PATH", cfg.observability.csv_path
        )

    return cfg


def _apply_cli_overrides(cfg: McpConfig, overrides: dict[str, Any]) -> McpConfig:
    """
    Apply command-line overrides. CLI beats ENV.

    Keys are ``section.field`` (e.g. ``permissions.allow_write``); ``None``
    values mean "not given on the command line" and are skipped.
    """
    for key, value in overrides.items():
        if value is None:
            continue
        section_name, _, field_name = key.partition(".")
        section = getattr(cfg, section_name, None)
        if section is None or not hasattr(section, field_name):
            raise ValueError(f"Unknown config override: {key}")
        setattr(section, field_name, value)
    return cfg


def load_config(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> McpConfig:
    """
    Load MCP config from aistor.toml with ENV and CLI overrides.

    Precedence: CLI → ENV → TOML → defaults

    Args:
        config_path: Path to aistor.toml. If None, searches:
            1. AISTOR_MCP_CONFIG env var
            2. ./aistor.toml
        overrides: ``section.field`` → value pairs from the command line

    Returns:
        McpConfig dataclass with merged settings.
    """
    # Find config file
    if config_path is None:
        if os.getenv("AISTOR_MCP_CONFIG"):
            config_path = Path(cast(str, os.getenv("AISTOR_MCP_CONFIG")))
        else:
            config_path = Path("aistor.toml")
    else:
        config_path = Path(config_path)

    # Start with defaults
    cfg = McpConfig()

    # Load TOML if exists
    if config_path.exists():
        with open(config_path, "rb") as f:
            _apply_toml(cfg, tomllib.load(f))

    # Apply ENV overrides, then CLI (highest precedence)
    cfg = _apply_env_overrides(cfg)
    if overrides:
        cfg = _apply_cli_overrides(cfg, overrides)

    # Validate final config
    cfg.validate()

    return cfg
