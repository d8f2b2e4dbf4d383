"""Persistent store round-trip, fallback and atomic write tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from logic.wardrobe_manager import WardrobeLifecycleManager
from memory.persistent_store import (
    JSONFileStore,
    MemoryStore,
    PersistentValue,
    SQLiteStore,
    build_store,
)
from models.clothing_item import ClothingItem, Laundry
from models.errors import StoreClosedError
from models.records import PROFILE_CODEC, WARDROBE_CODEC
from models.user_profile import ColorInfo, UserProfile, default_profile


def _wardrobe() -> tuple:
    return (
        ClothingItem("1", "Tee", "T-Shirt", "white", "solid", "casual", "data:image/png;base64,AA=="),
        ClothingItem(
            "2", "Jeans", "Jeans", "blue", "solid", "casual", "data:image/png;base64,AA==", Laundry(until=172800000)
        ),
    )


@pytest.fixture(params=["json", "sqlite"])
def store_factory(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "json":
        return lambda: JSONFileStore(tmp_path / "store")
    return lambda: SQLiteStore(tmp_path / "stylist.db")


def test_save_then_load_in_fresh_store_returns_equal_value(store_factory) -> None:
    store_factory().save("wardrobe", _wardrobe(), WARDROBE_CODEC)

    loaded = store_factory().load("wardrobe", (), WARDROBE_CODEC)

    assert loaded == _wardrobe()
    assert loaded[1].laundry_until == 172800000


def test_profile_round_trip(store_factory) -> None:
    profile = UserProfile(
        skin_tone="Fair with cool undertones",
        color_palette=(ColorInfo("Navy", "#000080"),),
        preferred_styles=("minimal",),
        region="FR",
    )
    store_factory().save("userProfile", profile, PROFILE_CODEC)

    assert store_factory().load("userProfile", default_profile(), PROFILE_CODEC) == profile


def test_missing_key_returns_default_and_persists_it(store_factory) -> None:
    store = store_factory()
    default = default_profile()

    assert store.load("userProfile", default, PROFILE_CODEC) == default
    assert store_factory().load("userProfile", UserProfile(region="JP"), PROFILE_CODEC) == default


def test_corrupt_json_falls_back_to_default(tmp_path: Path) -> None:
    base = tmp_path / "store"
    base.mkdir()
    (base / "wardrobe.json").write_text("{not json")

    assert JSONFileStore(base).load("wardrobe", (), WARDROBE_CODEC) == ()


def test_undecodable_bytes_fall_back_to_default_and_are_overwritten(tmp_path: Path) -> None:
    base = tmp_path / "store"
    base.mkdir()
    (base / "wardrobe.json").write_bytes(b"\xff\xfe[garbage")

    assert JSONFileStore(base).load("wardrobe", (), WARDROBE_CODEC) == ()
    assert json.loads((base / "wardrobe.json").read_text(encoding="utf-8")) == []
    assert WardrobeLifecycleManager(JSONFileStore(base)).items() == ()


def test_schema_drift_falls_back_to_default(tmp_path: Path) -> None:
    base = tmp_path / "store"
    base.mkdir()
    (base / "wardrobe.json").write_text(json.dumps([{"id": "1", "status": "folded"}]))

    assert JSONFileStore(base).load("wardrobe", (), WARDROBE_CODEC) == ()


def test_invalid_palette_colour_is_treated_as_corruption(tmp_path: Path) -> None:
    base = tmp_path / "store"
    base.mkdir()
    (base / "userProfile.json").write_text(json.dumps({"colorPalette": [{"name": "Bad", "hex": "blue"}]}))

    assert JSONFileStore(base).load("userProfile", default_profile(), PROFILE_CODEC) == default_profile()


def test_json_store_leaves_no_temp_files(tmp_path: Path) -> None:
    store = JSONFileStore(tmp_path)
    for value in range(3):
        store.save("counter", value)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["counter.json"]
    assert json.loads((tmp_path / "counter.json").read_text()) == 2


def test_keys_are_independent() -> None:
    store = MemoryStore()
    store.save("a", [1])
    store.save("b", {"x": 1})

    assert store.load("a", None) == [1]
    assert store.load("b", None) == {"x": 1}


def test_invalid_key_is_rejected() -> None:
    with pytest.raises(ValueError):
        MemoryStore().save("../escape", 1)


def test_save_after_close_raises() -> None:
    store = MemoryStore()
    store.close()

    with pytest.raises(StoreClosedError):
        store.save("wardrobe", [])


def test_persistent_value_behaves_like_a_variable(tmp_path: Path) -> None:
    value = PersistentValue(JSONFileStore(tmp_path), "wardrobe", (), WARDROBE_CODEC)
    assert value.get() == ()

    value.set(_wardrobe())
    assert value.get() == _wardrobe()
    value.update(lambda items: items[:1])

    reloaded = PersistentValue(JSONFileStore(tmp_path), "wardrobe", (), WARDROBE_CODEC)
    assert reloaded.get() == _wardrobe()[:1]


def test_failed_save_keeps_previous_in_memory_value() -> None:
    store = MemoryStore()
    value = PersistentValue(store, "numbers", [1])
    store.close()

    with pytest.raises(StoreClosedError):
        value.set([2])
    assert value.get() == [1]


def test_build_store_selects_backend(tmp_path: Path) -> None:
    assert isinstance(build_store("memory"), MemoryStore)
    assert isinstance(build_store("json", str(tmp_path / "j")), JSONFileStore)
    assert isinstance(build_store("SQLITE", str(tmp_path / "s.db")), SQLiteStore)
    with pytest.raises(ValueError):
        build_store("redis")
