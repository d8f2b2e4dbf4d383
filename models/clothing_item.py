"""Clothing item data model and laundry state variants."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union


class ItemStatus(str, Enum):
    """Availability of a garment as shown to the user."""

    AVAILABLE = "available"
    LAUNDRY = "laundry"


@dataclass(frozen=True)
class Available:
    """The garment can be worn."""

    @property
    def status(self) -> ItemStatus:
        return ItemStatus.AVAILABLE


@dataclass(frozen=True)
class Laundry:
    """The garment is being washed until ``until`` (epoch milliseconds)."""

    until: int

    def __post_init__(self) -> None:
        if isinstance(self.until, bool) or not isinstance(self.until, int):
            raise TypeError("Laundry.until must be an integer timestamp in milliseconds")

    @property
    def status(self) -> ItemStatus:
        return ItemStatus.LAUNDRY

    def expired(self, now: int) -> bool:
        return now > self.until


ItemState = Union[Available, Laundry]
AVAILABLE = Available()


@dataclass(frozen=True)
class ClothingAnalysis:
    """Descriptive attributes returned by image analysis."""

    name: str
    type: str
    color: str
    pattern: str
    style: str


@dataclass(frozen=True)
class ClothingItem:
    """One physical garment tracked in the wardrobe.

    Only ``state`` ever changes, and it does so by building a new item via
    :meth:`with_state`. ``status`` and ``laundry_until`` are derived from the
    state so they cannot disagree.
    """

    id: str
    name: str
    type: str
    color: str
    pattern: str
    style: str
    image_url: str
    state: ItemState = field(default=AVAILABLE)

    @property
    def status(self) -> ItemStatus:
        return self.state.status

    @property
    def laundry_until(self) -> Optional[int]:
        return self.state.until if isinstance(self.state, Laundry) else None

    @property
    def is_available(self) -> bool:
        return isinstance(self.state, Available)

    def with_state(self, state: ItemState) -> "ClothingItem":
        return replace(self, state=state)

    @classmethod
    def from_analysis(cls, item_id: str, analysis: ClothingAnalysis, image_url: str) -> "ClothingItem":
        return cls(
            id=item_id,
            name=analysis.name or analysis.type,
            type=analysis.type,
            color=analysis.color,
            pattern=analysis.pattern,
            style=analysis.style,
            image_url=image_url,
        )


__all__ = [
    "AVAILABLE",
    "Available",
    "ClothingAnalysis",
    "ClothingItem",
    "ItemState",
    "ItemStatus",
    "Laundry",
]
