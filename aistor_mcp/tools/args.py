"""Argument coercion shared by operation handlers."""

from __future__ import annotations

from typing import Any

_TRUE_STRINGS = ("1", "true", "yes")


def opt_str(args: dict[str, Any], name: str, default: str | None = None) -> str | None:
    value = args.get(name)
    if value is None or value == "":
        return default
    return str(value)


def req_str(args: dict[str, Any], name: str) -> str:
    # Presence is checked by the dispatcher; this only normalizes the type
    return str(args[name])


def flag(args: dict[str, Any], name: str, default: bool = False) -> bool:
    value = args.get(name)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def tag_map(args: dict[str, Any], name: str) -> dict[str, str]:
    value = args[name]
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be an object of key-value pairs")
    return {str(k): str(v) for k, v in value.items()}


def int_arg(args: dict[str, Any], name: str, default: int) -> int:
    value = args.get(name)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{name} must be a number") from e
