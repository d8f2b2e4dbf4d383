"""HTTP API tests using an in-memory store and the offline stylist client."""

from __future__ import annotations

import base64
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from models.clothing_item import ClothingAnalysis
from models.errors import StylistServiceError
from server.api import create_app
from stylist_app.app import PocketStylistApp
from stylist_app.config import StylistConfig
from tools.stylist_client import MockStylistClient

IMAGE = {"image_base64": base64.b64encode(b"fake-image").decode(), "mime_type": "image/png"}
TWO_DAYS_MS = 2 * 24 * 60 * 60 * 1000


class Clock:
    now = 0

    def __call__(self) -> int:
        return self.now


class SequencedClient(MockStylistClient):
    """Returns a different garment for each upload."""

    def __init__(self) -> None:
        super().__init__()
        self._names = iter(["Tee", "Jeans", "Sneakers", "Scarf"])

    def analyze_clothing_item(self, image):
        name = next(self._names)
        return ClothingAnalysis(name=name, type=name, color="black", pattern="solid", style="casual")


class DownClient(MockStylistClient):
    def analyze_clothing_item(self, image):
        raise StylistServiceError("analyze_clothing_item", "quota exceeded")


@pytest.fixture()
def clock() -> Clock:
    return Clock()


def _api(client: MockStylistClient, clock: Clock) -> TestClient:
    stylist = PocketStylistApp(config=StylistConfig(store_backend="memory"), client=client, clock=clock)
    return TestClient(create_app(stylist=stylist))


@pytest.fixture()
def api(clock: Clock) -> Iterator[TestClient]:
    with _api(SequencedClient(), clock) as client:
        yield client


def _add(api: TestClient) -> dict:
    response = api.post("/wardrobe/items", json=IMAGE)
    assert response.status_code == 201
    return response.json()


def test_healthcheck_reports_sweeper(api: TestClient) -> None:
    body = api.get("/healthz").json()
    assert body["status"] == "ok"
    assert body["sweeper_running"] is True


def test_correlation_id_is_echoed(api: TestClient) -> None:
    response = api.get("/wardrobe", headers={"X-Correlation-ID": "abc123"})
    assert response.headers["X-Correlation-ID"] == "abc123"


def test_uploaded_items_are_prepended_and_available(api: TestClient) -> None:
    first = _add(api)
    second = _add(api)

    items = api.get("/wardrobe").json()["items"]
    assert [item["id"] for item in items] == [second["id"], first["id"]]
    assert first["status"] == "available"
    assert "laundryUntil" not in first
    assert first["imageUrl"].startswith("data:image/png;base64,")


def test_laundry_lifecycle_over_http(api: TestClient, clock: Clock) -> None:
    item = _add(api)

    washed = api.post(f"/wardrobe/items/{item['id']}/laundry").json()
    assert washed["status"] == "laundry"
    assert washed["laundryUntil"] == TWO_DAYS_MS

    clock.now = TWO_DAYS_MS + 1
    swept = api.post("/wardrobe/sweep").json()
    assert swept["reverted"] == 1
    assert swept["items"][0]["status"] == "available"

    assert api.post(f"/wardrobe/items/{item['id']}/toggle").json()["status"] == "laundry"
    assert api.post(f"/wardrobe/items/{item['id']}/clean").json()["status"] == "available"


def test_unknown_item_returns_404(api: TestClient) -> None:
    response = api.post("/wardrobe/items/ghost/laundry")
    assert response.status_code == 404
    assert response.json()["error_code"] == "ItemNotFoundError"


def test_outfit_needs_two_available_items(api: TestClient) -> None:
    _add(api)

    response = api.post("/outfits/suggest", json={"occasion": "work"})

    assert response.status_code == 422
    assert response.json()["error_code"] == "NotEnoughItemsError"
    assert "Add more items" in response.json()["message"]


def test_suggest_then_wore(api: TestClient, clock: Clock) -> None:
    _add(api)
    _add(api)
    clock.now = 500

    suggestion = api.post("/outfits/suggest", json={"occasion": "night out"}).json()
    assert suggestion["occasion"] == "night out"
    ids = [item["id"] for item in suggestion["items"]]
    assert len(ids) == 2

    updated = api.post("/outfits/wore", json={"item_ids": ids + ["ghost"]}).json()["updated"]
    assert {item["laundryUntil"] for item in updated} == {500 + TWO_DAYS_MS}

    again = api.post("/outfits/wore", json={"item_ids": ids}).json()["updated"]
    assert again == []


def test_service_failure_returns_generic_message_and_keeps_wardrobe(clock: Clock) -> None:
    with _api(DownClient(), clock) as api:
        response = api.post("/wardrobe/items", json=IMAGE)

        assert response.status_code == 502
        assert "try again" in response.json()["message"]
        assert api.get("/wardrobe").json()["items"] == []


def test_profile_endpoints(api: TestClient) -> None:
    assert api.get("/profile").json()["preferredStyles"] == ["casual", "chic"]

    updated = api.put(
        "/profile",
        json={"skinTone": "Olive", "colorPalette": [], "preferredStyles": ["minimal"], "region": "DE"},
    ).json()
    assert updated["region"] == "DE"

    added = api.post("/profile/colors", json={"name": "Forest Green", "hex": "#228b22"})
    assert added.status_code == 201
    assert added.json()["colorPalette"] == [{"name": "Forest Green", "hex": "#228B22"}]

    removed = api.delete("/profile/colors/228B22").json()
    assert removed["colorPalette"] == []


def test_invalid_colour_is_bad_request(api: TestClient) -> None:
    response = api.post("/profile/colors", json={"name": "Red", "hex": "#12"})
    assert response.status_code == 400
    assert response.json()["error_code"] == "InvalidColorError"


def test_skin_tone_analysis_updates_profile(api: TestClient) -> None:
    profile = api.post("/profile/skin-tone", json=IMAGE).json()
    assert profile["skinTone"] == "Medium with warm undertones"
    assert len(profile["colorPalette"]) == 5


def test_try_on_requires_a_garment(api: TestClient) -> None:
    response = api.post("/try-on", json={"person": IMAGE})
    assert response.status_code == 400

    ok = api.post("/try-on", json={"person": IMAGE, "upper": IMAGE})
    assert ok.status_code == 200
    assert ok.json()["image"].startswith("data:image/png;base64,")


def test_shopping_endpoints(api: TestClient) -> None:
    assert "US" in api.get("/shopping/trends").json()["trends"]
    assert "JP" in api.get("/shopping/trends", params={"region": "JP"}).json()["trends"]

    advice = api.post("/shopping/advice", json={"item_description": "a black leather jacket"})
    assert advice.status_code == 200
    assert "a black leather jacket" in advice.json()["advice"]


def test_image_payload_requires_a_source(api: TestClient) -> None:
    assert api.post("/wardrobe/items", json={}).status_code == 422


def test_unknown_occasion_is_rejected(api: TestClient) -> None:
    _add(api)
    _add(api)

    assert api.post("/outfits/suggest", json={"occasion": "brunch"}).status_code == 422
    assert api.post("/outfits/suggest", json={"occasion": "Work"}).json()["occasion"] == "work"
    assert api.post("/outfits/suggest", json={}).json()["occasion"] == "casual"
