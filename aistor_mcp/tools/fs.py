"""
Local filesystem access for the AIStor MCP server.

Security features:
- Path normalization (resolves .., symlinks)
- Traversal protection (must stay within allowed directories)
- Device file rejection
- Symlinks resolved before the containment check
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import UTC, datetime
import os
from pathlib import Path
import stat as stat_module
from typing import Any

import humanize

from aistor_mcp.bounded import BoundedItems, bound_items
from aistor_mcp.errors import PathNotAllowedError


def normalize_path(path: str | Path) -> Path:
    """
    Normalize and resolve a path safely.

    - Expands ~ to home directory
    - Resolves .. and symlinks
    - Returns absolute path

    Raises:
        PathNotAllowedError: If path contains null bytes or is empty
    """
    path_str = str(path)

    if not path_str.strip():
        raise PathNotAllowedError("Path must not be empty", path=path_str)

    # Reject null bytes (potential injection)
    if "\x00" in path_str:
        raise PathNotAllowedError("Path contains null bytes", path=path_str)

    # Expand ~ and make absolute
    expanded = os.path.expanduser(path_str)
    return Path(expanded).resolve()


def check_path_allowed(path: Path, allowed_directories: Sequence[str]) -> bool:
    """
    Check if path is within one of the allowed directories.

    Containment is by path component, so ``/tmpfoo`` is not inside ``/tmp``.
    An empty allowed set grants nothing.
    """
    for root in allowed_directories:
        try:
            path.relative_to(Path(root).expanduser().resolve())
            return True
        except ValueError:
            continue

    return False


def _is_device_file(path: Path) -> bool:
    """Check if path is a device file (block/char special)."""
    try:
        mode = path.stat().st_mode
        return stat_module.S_ISBLK(mode) or stat_module.S_ISCHR(mode)
    except OSError:
        return False


def validate_path(path: str | Path, allowed_directories: Sequence[str]) -> Path:
    """
    Validate and normalize a local path before any remote call touches it.

    Args:
        path: Raw path from the caller
        allowed_directories: Allowed directory prefixes

    Returns:
        Validated, resolved Path

    Raises:
        PathNotAllowedError: If path is not safe to access
    """
    resolved = normalize_path(path)

    if not check_path_allowed(resolved, allowed_directories):
        raise PathNotAllowedError(
            f"Access denied: {path} is not in allowed directories: "
            f"{', '.join(allowed_directories)}",
            path=str(path),
        )

    if resolved.exists() and _is_device_file(resolved):
        raise PathNotAllowedError(f"Cannot access device file: {resolved}", path=str(path))

    return resolved


def _iter_entries(directory: Path) -> Iterator[dict[str, Any]]:
    for entry in sorted(directory.iterdir()):
        if entry.is_symlink():
            entry_type = "symlink"
        elif entry.is_dir():
            entry_type = "directory"
        else:
            entry_type = "file"

        entry_data: dict[str, Any] = {
            "name": entry.name,
            "type": entry_type,
            "path": str(entry),
        }
        try:
            entry_stat = entry.stat()
        except OSError:
            # Dangling symlink
            yield entry_data
            continue

        entry_data["size"] = entry_stat.st_size
        entry_data["size_human"] = humanize.naturalsize(entry_stat.st_size, binary=True)
        entry_data["modified"] = datetime.fromtimestamp(entry_stat.st_mtime, tz=UTC).isoformat()
        yield entry_data


def list_local_files(
    directory: str | Path,
    allowed_directories: Sequence[str],
    max_entries: int = 1000,
) -> tuple[Path, BoundedItems[dict[str, Any]]]:
    """
    List a local directory inside the sandbox.

    Returns:
        The resolved directory and its bounded entry listing

    Raises:
        PathNotAllowedError: If the directory is outside the sandbox
        NotADirectoryError / FileNotFoundError: If it is not a readable directory
    """
    resolved = validate_path(directory, allowed_directories)

    if not resolved.exists():
        raise FileNotFoundError(f"Cannot access directory {directory}: not found")
    if not resolved.is_dir():
        raise NotADirectoryError(f"Cannot access directory {directory}: not a directory")

    return resolved, bound_items(_iter_entries(resolved), max_entries)
