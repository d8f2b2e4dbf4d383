"""Model package exports."""

from models.clothing_item import AVAILABLE, Available, ClothingAnalysis, ClothingItem, ItemStatus, Laundry
from models.user_profile import ColorInfo, UserProfile, default_profile

__all__ = [
    "AVAILABLE",
    "Available",
    "ClothingAnalysis",
    "ClothingItem",
    "ColorInfo",
    "ItemStatus",
    "Laundry",
    "UserProfile",
    "default_profile",
]
