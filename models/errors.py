"""Named error conditions shared by the stylist components."""

from __future__ import annotations

from typing import Any, Dict, Optional


class StylistError(Exception):
    """Base class for errors the API can translate into a user-facing message."""

    user_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.user_message
        self.details = details or {}
        super().__init__(self.message)


class NotEnoughItemsError(StylistError):
    """Raised before outfit generation when too few garments are available."""

    user_message = "Not enough available items in your wardrobe to create an outfit. Add more items."

    def __init__(self, available: int, required: int) -> None:
        super().__init__(details={"available": available, "required": required})
        self.available = available
        self.required = required


class StylistServiceError(StylistError):
    """Raised when the generative styling backend fails or returns unusable output."""

    user_message = "The styling service is unavailable right now. Please try again."

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(
            message=f"{operation} failed: {reason}",
            details={"operation": operation},
        )
        self.operation = operation
        self.reason = reason


class ItemNotFoundError(StylistError, KeyError):
    """Raised when a wardrobe item id is not known."""

    user_message = "That item is not in your wardrobe."

    def __init__(self, item_id: str) -> None:
        super().__init__(message=f"Unknown wardrobe item {item_id!r}", details={"id": item_id})
        self.item_id = item_id

    def __str__(self) -> str:
        return self.message


class LifecycleClosedError(StylistError, RuntimeError):
    """Raised when a wardrobe action arrives after the manager was stopped."""

    user_message = "The wardrobe is shutting down."


class StoreClosedError(StylistError, RuntimeError):
    """Raised when a value is saved after its store was closed."""

    user_message = "Storage is no longer available."


class InvalidColorError(StylistError, ValueError):
    """Raised for palette colours without a name or a valid hex code."""

    user_message = "Please enter a valid color name and a 3 or 6-digit hex code (e.g., #F00 or #FF0000)."


__all__ = [
    "InvalidColorError",
    "ItemNotFoundError",
    "LifecycleClosedError",
    "NotEnoughItemsError",
    "StoreClosedError",
    "StylistError",
    "StylistServiceError",
]
