"""Pocket Stylist bootstrap: wires storage, lifecycle, profile and stylist client."""

from __future__ import annotations

import logging
from typing import List, Optional

from logic.laundry import Clock, now_ms
from logic.outfits import OutfitService
from logic.wardrobe_manager import WardrobeLifecycleManager
from memory.persistent_store import PersistentStore, build_store
from memory.profile_service import StyleProfileService
from models.clothing_item import ClothingItem
from models.user_profile import UserProfile
from stylist_app.config import StylistConfig
from stylist_app.logging_config import configure_logging, log_event
from tools.image_fetcher import fetch_image
from tools.stylist_client import (
    GeminiStylistClient,
    ImageInput,
    MockStylistClient,
    StylistClient,
    TryOnGarments,
)

LOGGER = logging.getLogger(__name__)


class PocketStylistApp:
    """Owns every long-lived component for one process.

    ``start`` runs the first laundry sweep and schedules the rest; ``stop``
    cancels the sweep and closes the store so nothing is written afterwards.
    """

    def __init__(
        self,
        config: StylistConfig | None = None,
        client: StylistClient | None = None,
        store: PersistentStore | None = None,
        clock: Clock = now_ms,
    ) -> None:
        self.config = config or StylistConfig.from_env()
        configure_logging()

        self.store = store or build_store(self.config.store_backend, self.config.resolved_store_path)
        self.client = client or self._build_client()
        self.wardrobe = WardrobeLifecycleManager(
            self.store,
            clock=clock,
            laundry_duration_ms=self.config.laundry_duration_ms,
            sweep_interval_seconds=self.config.sweep_interval_seconds,
        )
        self.profiles = StyleProfileService(self.store)
        self.outfits = OutfitService(self.wardrobe, self.profiles, self.client)
        self._started = False

    def _build_client(self) -> StylistClient:
        if not self.config.google_api_key:
            log_event(LOGGER, logging.WARNING, "stylist_client_offline", reason="missing_api_key")
            return MockStylistClient()
        return GeminiStylistClient(
            api_key=self.config.google_api_key,
            text_model=self.config.text_model,
            image_model=self.config.image_model,
        )

    def start(self) -> None:
        if self._started:
            return
        self.wardrobe.start()
        self._started = True
        log_event(
            LOGGER,
            logging.INFO,
            "app_started",
            store_backend=self.config.store_backend,
            items=len(self.wardrobe.items()),
        )

    def stop(self) -> None:
        self.wardrobe.stop()
        self.store.close()
        self._started = False
        log_event(LOGGER, logging.INFO, "app_stopped")

    def __enter__(self) -> "PocketStylistApp":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def resolve_image(
        self,
        image_base64: Optional[str] = None,
        mime_type: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> ImageInput:
        """Build an image from inline base64 or by downloading ``image_url``."""

        if image_base64:
            return ImageInput.from_base64(image_base64, mime_type or "image/jpeg")
        if image_url:
            return fetch_image(url=image_url, timeout=self.config.request_timeout_seconds)
        raise ValueError("Provide either image_base64 or image_url")

    def add_item_from_image(self, image: ImageInput) -> ClothingItem:
        """Analyse a garment photo and add it to the wardrobe.

        The wardrobe is only written once the analysis has succeeded.
        """

        analysis = self.client.analyze_clothing_item(image)
        return self.wardrobe.add_item(analysis, image.to_data_url())

    def analyze_profile_photo(self, image: ImageInput) -> UserProfile:
        analysis = self.client.analyze_skin_tone(image)
        return self.profiles.apply_skin_analysis(analysis.skin_tone, analysis.color_palette)

    def try_on(self, person: ImageInput, garments: TryOnGarments) -> str:
        garments.require_any()
        return self.client.virtual_try_on(person, garments)

    def fashion_trends(self, region: Optional[str] = None) -> str:
        return self.client.fashion_trends(region or self.profiles.get_profile().region or "US")

    def shopping_advice(self, item_description: str) -> str:
        description = (item_description or "").strip()
        if not description:
            raise ValueError("Describe the item you are thinking about buying")
        return self.client.shopping_advice(description, self.wardrobe.items(), self.profiles.get_profile())

    def health(self) -> dict:
        return {
            "status": "ok",
            "service": "pocket-stylist",
            "environment": self.config.environment or "local",
            "model": self.config.text_model,
            "client": type(self.client).__name__,
            "sweeper_running": self.wardrobe.sweeper.running,
        }

    def summary(self) -> List[str]:
        return [f"{item.name} ({item.status.value})" for item in self.wardrobe.items()]


__all__ = ["PocketStylistApp"]
