"""Laundry lifecycle transitions over an immutable wardrobe.

Every function returns a new wardrobe tuple and never raises for unknown ids.
Items that are not affected are returned as the same objects, so callers can
compare results by identity or equality.
"""

from __future__ import annotations

import time
from typing import Callable, Iterable, Sequence, Tuple

from models.clothing_item import AVAILABLE, ClothingItem, Laundry

LAUNDRY_DURATION_MS = 2 * 24 * 60 * 60 * 1000
SWEEP_INTERVAL_SECONDS = 60 * 60

Wardrobe = Tuple[ClothingItem, ...]
Clock = Callable[[], int]


def now_ms() -> int:
    """Wall clock in epoch milliseconds."""

    return time.time_ns() // 1_000_000


def _map(wardrobe: Sequence[ClothingItem], func: Callable[[ClothingItem], ClothingItem]) -> Wardrobe:
    return tuple(func(item) for item in wardrobe)


def send_to_laundry(
    wardrobe: Sequence[ClothingItem],
    item_id: str,
    now: int,
    duration_ms: int = LAUNDRY_DURATION_MS,
) -> Wardrobe:
    """Move an available item to laundry until ``now + duration_ms``.

    An item already in laundry keeps its existing deadline.
    """

    deadline = Laundry(until=now + duration_ms)

    def step(item: ClothingItem) -> ClothingItem:
        if item.id == item_id and item.is_available:
            return item.with_state(deadline)
        return item

    return _map(wardrobe, step)


def mark_clean(wardrobe: Sequence[ClothingItem], item_id: str) -> Wardrobe:
    """Return an item to ``available`` regardless of its deadline."""

    def step(item: ClothingItem) -> ClothingItem:
        if item.id == item_id and not item.is_available:
            return item.with_state(AVAILABLE)
        return item

    return _map(wardrobe, step)


def toggle_laundry(
    wardrobe: Sequence[ClothingItem],
    item_id: str,
    now: int,
    duration_ms: int = LAUNDRY_DURATION_MS,
) -> Wardrobe:
    for item in wardrobe:
        if item.id == item_id:
            if item.is_available:
                return send_to_laundry(wardrobe, item_id, now, duration_ms)
            return mark_clean(wardrobe, item_id)
    return tuple(wardrobe)


def revert_expired(wardrobe: Sequence[ClothingItem], now: int) -> Wardrobe:
    """Make every laundry item whose deadline has passed available again."""

    def step(item: ClothingItem) -> ClothingItem:
        if isinstance(item.state, Laundry) and item.state.expired(now):
            return item.with_state(AVAILABLE)
        return item

    return _map(wardrobe, step)


def commit_worn(
    wardrobe: Sequence[ClothingItem],
    item_ids: Iterable[str],
    now: int,
    duration_ms: int = LAUNDRY_DURATION_MS,
) -> Wardrobe:
    """Send every available item in ``item_ids`` to laundry with one shared deadline."""

    worn = set(item_ids)
    deadline = Laundry(until=now + duration_ms)

    def step(item: ClothingItem) -> ClothingItem:
        if item.id in worn and item.is_available:
            return item.with_state(deadline)
        return item

    return _map(wardrobe, step)


def count_expired(wardrobe: Sequence[ClothingItem], now: int) -> int:
    return sum(1 for item in wardrobe if isinstance(item.state, Laundry) and item.state.expired(now))


__all__ = [
    "Clock",
    "LAUNDRY_DURATION_MS",
    "SWEEP_INTERVAL_SECONDS",
    "Wardrobe",
    "commit_worn",
    "count_expired",
    "mark_clean",
    "now_ms",
    "revert_expired",
    "send_to_laundry",
    "toggle_laundry",
]
