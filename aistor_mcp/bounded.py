"""
Enumeration bounding for remote listings.

Remote listings can be arbitrarily large. ``bound_items`` consumes a stream
incrementally, stops at a hard cap and reports whether anything was left
over. There is no continuation token: callers wanting more must narrow the
listing (for example with a prefix) and call again.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_MAX_ITEMS = 1000

_SENTINEL = object()


@dataclass
class BoundedItems(Generic[T]):
    """Items kept from a stream and whether the stream went past the cap."""

    items: list[T] = field(default_factory=list)
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.items)


def bound_items(items: Iterable[T], limit: int = DEFAULT_MAX_ITEMS) -> BoundedItems[T]:
    """
    Collect at most ``limit`` items from ``items``.

    Once the cap is reached the stream is probed for exactly one more item;
    ``truncated`` is True only when that item exists, so a stream of exactly
    ``limit`` items is reported complete. Errors raised by the stream
    propagate immediately and the partial buffer is dropped.

    Args:
        items: Any iterable, typically a lazy paginator over remote objects
        limit: Maximum number of items to keep (must be positive)

    Returns:
        BoundedItems with the kept items and the truncation flag
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    kept: list[T] = []
    iterator = iter(items)
    for item in iterator:
        kept.append(item)
        if len(kept) >= limit:
            truncated = next(iterator, _SENTINEL) is not _SENTINEL
            return BoundedItems(items=kept, truncated=truncated)

    return BoundedItems(items=kept, truncated=False)
