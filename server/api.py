"""FastAPI server exposing the wardrobe, profile, outfit and shopping endpoints."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator, model_validator

from logic.outfits import DEFAULT_OCCASION, OCCASIONS, normalize_occasion
from models.clothing_item import ClothingItem
from models.errors import (
    InvalidColorError,
    ItemNotFoundError,
    LifecycleClosedError,
    NotEnoughItemsError,
    StoreClosedError,
    StylistError,
    StylistServiceError,
)
from models.records import UserProfileRecord, item_to_payload, profile_to_payload
from models.user_profile import UserProfile
from stylist_app.app import PocketStylistApp
from stylist_app.logging_config import configure_logging, operation_context
from tools.image_fetcher import ImageFetchError, InvalidImageURLError
from tools.stylist_client import ImageInput, TryOnGarments

CORRELATION_HEADER = "X-Correlation-ID"
_ERROR_STATUS = (
    (NotEnoughItemsError, 422),
    (ItemNotFoundError, 404),
    (InvalidColorError, 400),
    (InvalidImageURLError, 400),
    (ImageFetchError, 502),
    (StylistServiceError, 502),
    (LifecycleClosedError, 503),
    (StoreClosedError, 503),
)


class ImagePayload(BaseModel):
    """An image given inline as base64 (or a data URL) or by HTTP(S) URL."""

    image_base64: str | None = Field(None, description="Base64 image bytes or a data URL")
    mime_type: str | None = Field(None, description="MIME type for image_base64, e.g. image/png")
    image_url: str | None = Field(None, description="HTTP(S) URL to download the image from")

    @model_validator(mode="after")
    def _one_source(self) -> "ImagePayload":
        if not self.image_base64 and not self.image_url:
            raise ValueError("Provide either image_base64 or image_url")
        return self


class ColorRequest(BaseModel):
    name: str = Field(..., min_length=1)
    hex: str = Field(..., min_length=2)


class OutfitSuggestRequest(BaseModel):
    occasion: str = Field(DEFAULT_OCCASION, description=f"One of: {', '.join(OCCASIONS)}")

    @field_validator("occasion")
    @classmethod
    def _known_occasion(cls, value: str) -> str:
        return normalize_occasion(value)


class WoreRequest(BaseModel):
    item_ids: List[str] = Field(..., min_length=1, description="Ids of the items that were worn")


class TryOnRequest(BaseModel):
    person: ImagePayload
    upper: ImagePayload | None = None
    lower: ImagePayload | None = None
    accessory: ImagePayload | None = None


class ShoppingAdviceRequest(BaseModel):
    item_description: str = Field(..., min_length=1, description="e.g. a black leather jacket")


def _status_for(exc: StylistError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def stylist_error_handler(request: Request, exc: StylistError) -> JSONResponse:
    return JSONResponse(
        status_code=_status_for(exc),
        content={"error_code": type(exc).__name__, "message": exc.user_message, "detail": exc.message},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error_code": "BadRequest", "message": str(exc)})


def get_stylist(request: Request) -> PocketStylistApp:
    return request.app.state.stylist


def _item(item: Optional[ClothingItem], item_id: str) -> dict:
    if item is None:
        raise ItemNotFoundError(item_id)
    return item_to_payload(item)


def _profile(profile: UserProfile) -> dict:
    return profile_to_payload(profile)


def _image(stylist: PocketStylistApp, payload: ImagePayload) -> ImageInput:
    return stylist.resolve_image(payload.image_base64, payload.mime_type, payload.image_url)


def create_app(
    stylist: PocketStylistApp | None = None,
    factory: Callable[[], PocketStylistApp] = PocketStylistApp,
) -> FastAPI:
    """Build the API; the stylist app is created at startup and stopped at shutdown."""

    @asynccontextmanager
    async def lifespan(api: FastAPI):
        instance = stylist or factory()
        api.state.stylist = instance
        instance.start()
        try:
            yield
        finally:
            instance.stop()

    api = FastAPI(title="Pocket Stylist", version="0.1.0", lifespan=lifespan)
    api.add_exception_handler(StylistError, stylist_error_handler)
    api.add_exception_handler(ValueError, value_error_handler)

    @api.middleware("http")
    async def correlation_middleware(request: Request, call_next):
        with operation_context(
            f"{request.method} {request.url.path}",
            correlation_id=request.headers.get(CORRELATION_HEADER),
        ) as correlation_id:
            response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @api.get("/healthz")
    def healthcheck(stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        """Lightweight readiness probe."""

        return stylist.health()

    @api.get("/wardrobe")
    def list_wardrobe(stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return {"items": [item_to_payload(item) for item in stylist.wardrobe.items()]}

    @api.post("/wardrobe/items", status_code=201)
    def add_item(payload: ImagePayload, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        """Analyse a garment photo and add it to the front of the wardrobe."""

        item = stylist.add_item_from_image(_image(stylist, payload))
        return item_to_payload(item)

    @api.post("/wardrobe/items/{item_id}/laundry")
    def send_to_laundry(item_id: str, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _item(stylist.wardrobe.send_to_laundry(item_id), item_id)

    @api.post("/wardrobe/items/{item_id}/clean")
    def mark_clean(item_id: str, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _item(stylist.wardrobe.mark_clean(item_id), item_id)

    @api.post("/wardrobe/items/{item_id}/toggle")
    def toggle_laundry(item_id: str, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _item(stylist.wardrobe.toggle_laundry(item_id), item_id)

    @api.post("/wardrobe/sweep")
    def sweep(stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        reverted = stylist.wardrobe.sweep()
        return {"reverted": reverted, "items": [item_to_payload(item) for item in stylist.wardrobe.items()]}

    @api.get("/profile")
    def get_profile(stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _profile(stylist.profiles.get_profile())

    @api.put("/profile")
    def put_profile(payload: UserProfileRecord, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _profile(stylist.profiles.save_profile(payload.to_profile()))

    @api.post("/profile/skin-tone")
    def analyze_skin_tone(payload: ImagePayload, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _profile(stylist.analyze_profile_photo(_image(stylist, payload)))

    @api.post("/profile/colors", status_code=201)
    def add_color(payload: ColorRequest, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _profile(stylist.profiles.add_color(payload.name, payload.hex))

    @api.delete("/profile/colors/{hex_code}")
    def remove_color(hex_code: str, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return _profile(stylist.profiles.remove_color(hex_code))

    @api.post("/outfits/suggest")
    def suggest_outfit(payload: OutfitSuggestRequest, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        suggestion = stylist.outfits.suggest(payload.occasion)
        return {
            "occasion": suggestion.occasion,
            "outfit": suggestion.outfit,
            "justification": suggestion.justification,
            "items": [item_to_payload(item) for item in suggestion.items],
        }

    @api.post("/outfits/wore")
    def wore_outfit(payload: WoreRequest, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        changed = stylist.outfits.wore(payload.item_ids)
        return {"updated": [item_to_payload(item) for item in changed]}

    @api.post("/try-on")
    def try_on(payload: TryOnRequest, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        garments = TryOnGarments(
            upper=_image(stylist, payload.upper) if payload.upper else None,
            lower=_image(stylist, payload.lower) if payload.lower else None,
            accessory=_image(stylist, payload.accessory) if payload.accessory else None,
        )
        return {"image": stylist.try_on(_image(stylist, payload.person), garments)}

    @api.get("/shopping/trends")
    def trends(region: str | None = None, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        return {"trends": stylist.fashion_trends(region)}

    @api.post("/shopping/advice")
    def shopping_advice(payload: ShoppingAdviceRequest, stylist: PocketStylistApp = Depends(get_stylist)) -> dict:
        if not payload.item_description.strip():
            raise HTTPException(status_code=400, detail="item_description is required")
        return {"advice": stylist.shopping_advice(payload.item_description)}

    return api


app = create_app()


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    configure_logging()
    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)
