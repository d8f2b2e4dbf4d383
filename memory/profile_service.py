"""User style profile persistence."""

import logging
from dataclasses import replace
from typing import Iterable, Optional

from memory.persistent_store import PersistentStore, PersistentValue
from models.records import PROFILE_CODEC, PROFILE_KEY
from models.user_profile import ColorInfo, UserProfile, default_profile, parse_styles
from stylist_app.logging_config import log_event

LOGGER = logging.getLogger(__name__)


class StyleProfileService:
    """Holds the single user profile stored under ``userProfile``."""

    def __init__(self, store: PersistentStore) -> None:
        self._profile: PersistentValue[UserProfile] = PersistentValue(
            store, PROFILE_KEY, default_profile(), PROFILE_CODEC
        )

    def get_profile(self) -> UserProfile:
        return self._profile.get()

    def save_profile(self, profile: UserProfile) -> UserProfile:
        log_event(LOGGER, logging.INFO, "profile_saved", styles=list(profile.preferred_styles), region=profile.region)
        return self._profile.set(profile)

    def update_profile(
        self,
        skin_tone: Optional[str] = None,
        preferred_styles: Optional[str | Iterable[str]] = None,
        region: Optional[str] = None,
    ) -> UserProfile:
        def apply(profile: UserProfile) -> UserProfile:
            changes = {}
            if skin_tone is not None:
                changes["skin_tone"] = skin_tone
            if preferred_styles is not None:
                changes["preferred_styles"] = parse_styles(preferred_styles)
            if region is not None:
                changes["region"] = region.strip() or profile.region
            return replace(profile, **changes)

        return self._profile.update(apply)

    def apply_skin_analysis(self, skin_tone: str, palette: Iterable[ColorInfo]) -> UserProfile:
        colors = list(palette)
        log_event(LOGGER, logging.INFO, "profile_skin_analysis_applied", palette_size=len(colors))
        return self._profile.update(lambda profile: profile.with_skin_analysis(skin_tone, colors))

    def add_color(self, name: str, hex_code: str) -> UserProfile:
        color = ColorInfo(name=name, hex=hex_code)
        return self._profile.update(lambda profile: profile.with_color(color))

    def remove_color(self, hex_code: str) -> UserProfile:
        return self._profile.update(lambda profile: profile.without_color(hex_code))


__all__ = ["StyleProfileService"]
