"""Style profile service tests."""

from pathlib import Path

import pytest

from memory.persistent_store import JSONFileStore
from memory.profile_service import StyleProfileService
from models.errors import InvalidColorError
from models.user_profile import ColorInfo, UserProfile


def test_profile_defaults_on_first_run(tmp_path: Path) -> None:
    profile = StyleProfileService(JSONFileStore(tmp_path)).get_profile()

    assert profile == UserProfile(skin_tone="", color_palette=(), preferred_styles=("casual", "chic"), region="US")
    assert (tmp_path / "userProfile.json").exists()


def test_updates_persist_across_instances(tmp_path: Path) -> None:
    service = StyleProfileService(JSONFileStore(tmp_path))
    service.update_profile(preferred_styles="minimal, street", region="UK")
    service.add_color("Forest Green", "#228b22")

    reloaded = StyleProfileService(JSONFileStore(tmp_path)).get_profile()
    assert reloaded.preferred_styles == ("minimal", "street")
    assert reloaded.region == "UK"
    assert reloaded.color_palette == (ColorInfo("Forest Green", "#228B22"),)


def test_blank_region_keeps_existing(tmp_path: Path) -> None:
    service = StyleProfileService(JSONFileStore(tmp_path))
    assert service.update_profile(region="  ").region == "US"


def test_invalid_colour_leaves_profile_unchanged(tmp_path: Path) -> None:
    service = StyleProfileService(JSONFileStore(tmp_path))
    before = service.get_profile()

    with pytest.raises(InvalidColorError):
        service.add_color("Nope", "#12")
    assert service.get_profile() == before


def test_remove_colour_by_hex(tmp_path: Path) -> None:
    service = StyleProfileService(JSONFileStore(tmp_path))
    service.add_color("Red", "#F00")
    service.add_color("Blue", "#00F")

    assert service.remove_color("#f00").palette_hexes() == ["#00F"]


def test_skin_analysis_replaces_tone_and_palette(tmp_path: Path) -> None:
    service = StyleProfileService(JSONFileStore(tmp_path))
    service.add_color("Old", "#000")

    profile = service.apply_skin_analysis("Olive", [ColorInfo("Teal", "#008080")])

    assert profile.skin_tone == "Olive"
    assert profile.palette_hexes() == ["#008080"]
    assert profile.preferred_styles == ("casual", "chic")
