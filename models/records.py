"""Pydantic schemas for the persisted wardrobe and profile documents.

The stored shape keeps the camelCase keys used by the browser client
(``imageUrl``, ``laundryUntil``, ``skinTone`` ...) so existing exports load
unchanged.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from memory.persistent_store import Codec
from models.clothing_item import AVAILABLE, ClothingItem, ItemState, Laundry
from models.user_profile import ColorInfo, UserProfile, default_profile

WARDROBE_KEY = "wardrobe"
PROFILE_KEY = "userProfile"

Wardrobe = Tuple[ClothingItem, ...]


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ClothingItemRecord(_Record):
    id: str = Field(min_length=1)
    name: str
    type: str
    color: str
    pattern: str = ""
    style: str = ""
    image_url: str = Field(alias="imageUrl")
    status: Literal["available", "laundry"] = "available"
    laundry_until: Optional[int] = Field(default=None, alias="laundryUntil")

    def to_item(self) -> ClothingItem:
        state: ItemState = AVAILABLE
        if self.status == "laundry":
            # A laundry record without a deadline reverts on the next sweep.
            state = Laundry(until=self.laundry_until if self.laundry_until is not None else 0)
        return ClothingItem(
            id=self.id,
            name=self.name,
            type=self.type,
            color=self.color,
            pattern=self.pattern,
            style=self.style,
            image_url=self.image_url,
            state=state,
        )

    @classmethod
    def from_item(cls, item: ClothingItem) -> "ClothingItemRecord":
        return cls(
            id=item.id,
            name=item.name,
            type=item.type,
            color=item.color,
            pattern=item.pattern,
            style=item.style,
            image_url=item.image_url,
            status=item.status.value,
            laundry_until=item.laundry_until,
        )


class ColorRecord(_Record):
    name: str
    hex: str


class UserProfileRecord(_Record):
    skin_tone: str = Field(default="", alias="skinTone")
    color_palette: List[ColorRecord] = Field(default_factory=list, alias="colorPalette")
    preferred_styles: List[str] = Field(default_factory=lambda: ["casual", "chic"], alias="preferredStyles")
    region: str = "US"

    def to_profile(self) -> UserProfile:
        return UserProfile(
            skin_tone=self.skin_tone,
            color_palette=tuple(ColorInfo(name=c.name, hex=c.hex) for c in self.color_palette),
            preferred_styles=tuple(self.preferred_styles),
            region=self.region,
        )

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserProfileRecord":
        return cls(
            skin_tone=profile.skin_tone,
            color_palette=[ColorRecord(name=c.name, hex=c.hex) for c in profile.color_palette],
            preferred_styles=list(profile.preferred_styles),
            region=profile.region,
        )


_WARDROBE_ADAPTER = TypeAdapter(List[ClothingItemRecord])


def item_to_payload(item: ClothingItem) -> dict:
    return ClothingItemRecord.from_item(item).model_dump(by_alias=True, exclude_none=True)


def wardrobe_to_payload(wardrobe: Sequence[ClothingItem]) -> List[dict]:
    return [item_to_payload(item) for item in wardrobe]


def wardrobe_from_payload(payload: Any) -> Wardrobe:
    """Validate a stored wardrobe list; the first occurrence of an id wins."""

    records = _WARDROBE_ADAPTER.validate_python(payload)
    seen = set()
    items = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        items.append(record.to_item())
    return tuple(items)


def profile_to_payload(profile: UserProfile) -> dict:
    return UserProfileRecord.from_profile(profile).model_dump(by_alias=True)


def profile_from_payload(payload: Any) -> UserProfile:
    return UserProfileRecord.model_validate(payload).to_profile()


WARDROBE_CODEC: Codec[Wardrobe] = Codec(encode=wardrobe_to_payload, decode=wardrobe_from_payload)
PROFILE_CODEC: Codec[UserProfile] = Codec(encode=profile_to_payload, decode=profile_from_payload)


__all__ = [
    "ClothingItemRecord",
    "ColorRecord",
    "PROFILE_CODEC",
    "PROFILE_KEY",
    "UserProfileRecord",
    "WARDROBE_CODEC",
    "WARDROBE_KEY",
    "Wardrobe",
    "default_profile",
    "item_to_payload",
    "profile_from_payload",
    "profile_to_payload",
    "wardrobe_from_payload",
    "wardrobe_to_payload",
]
