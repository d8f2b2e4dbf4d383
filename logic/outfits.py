"""Outfit suggestion flow around the stylist client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from logic.wardrobe_manager import WardrobeLifecycleManager
from memory.profile_service import StyleProfileService
from models.clothing_item import ClothingItem
from models.errors import NotEnoughItemsError
from stylist_app.logging_config import log_event
from tools.stylist_client import OutfitProposal, StylistClient

LOGGER = logging.getLogger(__name__)

MIN_OUTFIT_ITEMS = 2
OCCASIONS = ("casual", "work", "night out", "formal")
DEFAULT_OCCASION = "casual"


@dataclass(frozen=True)
class OutfitSuggestion:
    """A proposal from the stylist with its names resolved to wardrobe items."""

    occasion: str
    outfit: Dict[str, str]
    justification: str
    items: List[ClothingItem] = field(default_factory=list)

    @property
    def item_ids(self) -> List[str]:
        return [item.id for item in self.items]


def normalize_occasion(occasion: str | None) -> str:
    """Lower-case and trim ``occasion``; blank means the default, unknown values are rejected."""

    value = (occasion or "").strip().lower() or DEFAULT_OCCASION
    if value not in OCCASIONS:
        raise ValueError(f"Unknown occasion {occasion!r}; choose one of: {', '.join(OCCASIONS)}")
    return value


def ensure_enough_items(available: Sequence[ClothingItem], required: int = MIN_OUTFIT_ITEMS) -> None:
    if len(available) < required:
        raise NotEnoughItemsError(available=len(available), required=required)


def resolve_outfit_items(outfit: Dict[str, str], wardrobe: Sequence[ClothingItem]) -> List[ClothingItem]:
    """Match proposed names to available items, ignoring case.

    Unmatched names are dropped and an item used by two roles appears once.
    """

    by_name: Dict[str, ClothingItem] = {}
    for item in wardrobe:
        if item.is_available:
            by_name.setdefault(item.name.strip().lower(), item)

    resolved: List[ClothingItem] = []
    seen = set()
    for name in outfit.values():
        if not name:
            continue
        item = by_name.get(name.strip().lower())
        if item is not None and item.id not in seen:
            resolved.append(item)
            seen.add(item.id)
    return resolved


class OutfitService:
    """Suggests outfits from available items and records what was worn."""

    def __init__(
        self,
        wardrobe: WardrobeLifecycleManager,
        profiles: StyleProfileService,
        client: StylistClient,
    ) -> None:
        self.wardrobe = wardrobe
        self.profiles = profiles
        self.client = client

    def suggest(self, occasion: str = DEFAULT_OCCASION) -> OutfitSuggestion:
        occasion = normalize_occasion(occasion)
        available = self.wardrobe.available_items()
        ensure_enough_items(available)

        proposal: OutfitProposal = self.client.generate_outfit(available, self.profiles.get_profile(), occasion)
        # Names are resolved against the wardrobe as it is after the call.
        items = resolve_outfit_items(proposal.outfit, self.wardrobe.available_items())
        log_event(
            LOGGER,
            logging.INFO,
            "outfit_suggested",
            occasion=occasion,
            roles=sorted(proposal.outfit),
            matched=len(items),
        )
        return OutfitSuggestion(
            occasion=occasion,
            outfit=dict(proposal.outfit),
            justification=proposal.justification,
            items=items,
        )

    def wore(self, item_ids: Sequence[str]) -> List[ClothingItem]:
        """Send every worn, still-available item to laundry with one deadline."""

        return self.wardrobe.commit_worn(item_ids)

    def wore_suggestion(self, suggestion: OutfitSuggestion) -> List[ClothingItem]:
        return self.wore(suggestion.item_ids)


__all__ = [
    "DEFAULT_OCCASION",
    "MIN_OUTFIT_ITEMS",
    "OCCASIONS",
    "OutfitService",
    "OutfitSuggestion",
    "normalize_occasion",
    "ensure_enough_items",
    "resolve_outfit_items",
]
