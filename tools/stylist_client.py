"""Generative styling backend: clothing and skin analysis, outfits, try-on and shopping text."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from models.clothing_item import ClothingAnalysis, ClothingItem
from models.errors import StylistServiceError
from models.records import profile_to_payload
from models.user_profile import ColorInfo, UserProfile
from stylist_app.config import DEFAULT_IMAGE_MODEL, DEFAULT_TEXT_MODEL
from stylist_app.logging_config import log_event
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)

OUTFIT_ROLES = ("top", "bottom", "shoes", "accessory")
REQUIRED_OUTFIT_ROLES = ("top", "bottom")
_BACKEND_ERRORS = (
    google_exceptions.GoogleAPIError,
    genai.types.BlockedPromptException,
    genai.types.StopCandidateException,
    ValueError,
)


@dataclass(frozen=True)
class ImageInput:
    """Raw image bytes with their MIME type."""

    data: bytes
    mime_type: str = "image/jpeg"

    def __post_init__(self) -> None:
        if not self.data:
            raise ValueError("Image data is empty")
        if not self.mime_type.startswith("image/"):
            raise ValueError(f"Unsupported image MIME type {self.mime_type!r}")

    @classmethod
    def from_base64(cls, encoded: str, mime_type: str = "image/jpeg") -> "ImageInput":
        """Decode plain base64 or a ``data:<mime>;base64,`` URL."""

        if encoded.startswith("data:") and "," in encoded:
            header, encoded = encoded.split(",", 1)
            mime_type = header[5:].split(";", 1)[0] or mime_type
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Image is not valid base64") from exc
        return cls(data=data, mime_type=mime_type)

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.data).decode('ascii')}"

    def as_part(self) -> Dict[str, Any]:
        return {"mime_type": self.mime_type, "data": self.data}


@dataclass(frozen=True)
class SkinToneAnalysis:
    skin_tone: str
    color_palette: List[ColorInfo] = field(default_factory=list)


@dataclass(frozen=True)
class OutfitProposal:
    """Outfit roles mapped to wardrobe item names, plus the stylist's reasoning."""

    outfit: Dict[str, str]
    justification: str


@dataclass(frozen=True)
class TryOnGarments:
    upper: Optional[ImageInput] = None
    lower: Optional[ImageInput] = None
    accessory: Optional[ImageInput] = None

    def require_any(self) -> None:
        if not (self.upper or self.lower or self.accessory):
            raise ValueError("Please upload your photo and at least one clothing item.")


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class _ClothingAnalysisPayload(_Payload):
    type: str = Field(min_length=1)
    color: str
    pattern: str
    style: str
    name: Optional[str] = None


class _ColorPayload(_Payload):
    name: str
    hex: str


class _SkinTonePayload(_Payload):
    skin_tone: str = Field(alias="skinTone")
    color_palette: List[_ColorPayload] = Field(default_factory=list, alias="colorPalette")


class _OutfitPayload(_Payload):
    outfit: Dict[str, Optional[str]]
    justification: str

    @field_validator("outfit")
    @classmethod
    def _require_top_and_bottom(cls, outfit: Dict[str, Optional[str]]) -> Dict[str, Optional[str]]:
        missing = [role for role in REQUIRED_OUTFIT_ROLES if not outfit.get(role)]
        if missing:
            raise ValueError(f"outfit is missing required roles: {missing}")
        return outfit


def _wardrobe_summary(items: Sequence[ClothingItem], include_name: bool = True) -> str:
    summary = []
    for item in items:
        entry = {"type": item.type, "color": item.color, "style": item.style}
        if include_name:
            entry["name"] = item.name
        summary.append(entry)
    return json.dumps(summary)


class StylistClient(ABC):
    """Boundary to the generative styling service."""

    @abstractmethod
    def analyze_clothing_item(self, image: ImageInput) -> ClothingAnalysis:
        """Describe the garment shown in ``image``."""

    @abstractmethod
    def analyze_skin_tone(self, image: ImageInput) -> SkinToneAnalysis:
        """Describe a skin tone and suggest five flattering colours."""

    @abstractmethod
    def generate_outfit(
        self, available_items: Sequence[ClothingItem], profile: UserProfile, occasion: str
    ) -> OutfitProposal:
        """Compose an outfit from ``available_items`` for ``occasion``."""

    @abstractmethod
    def virtual_try_on(self, person: ImageInput, garments: TryOnGarments) -> str:
        """Return a data URL of ``person`` wearing ``garments``."""

    @abstractmethod
    def fashion_trends(self, region: str) -> str:
        """Summarise current trends for ``region``."""

    @abstractmethod
    def shopping_advice(
        self, item_description: str, wardrobe: Sequence[ClothingItem], profile: UserProfile
    ) -> str:
        """Judge a prospective purchase against the existing wardrobe."""


class GeminiStylistClient(StylistClient):
    """Gemini-backed client; JSON responses are validated before use."""

    def __init__(
        self,
        api_key: str | None = None,
        text_model: str = DEFAULT_TEXT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
        model_factory: Callable[[str], Any] | None = None,
    ) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.text_model = text_model
        self.image_model = image_model
        self._model_factory = model_factory or genai.GenerativeModel

    def _generate(self, operation: str, model_name: str, contents: Any, json_response: bool = False) -> Any:
        model = self._model_factory(model_name)
        kwargs: Dict[str, Any] = {}
        if json_response:
            kwargs["generation_config"] = {"response_mime_type": "application/json"}
        try:
            return model.generate_content(contents, **kwargs)
        except _BACKEND_ERRORS as exc:
            log_event(LOGGER, logging.ERROR, "stylist_backend_failed", operation=operation, error=type(exc).__name__)
            raise StylistServiceError(operation, str(exc)) from exc

    def _text(self, operation: str, response: Any) -> str:
        try:
            text = response.text
        except ValueError as exc:
            raise StylistServiceError(operation, f"response had no text: {exc}") from exc
        if not text:
            raise StylistServiceError(operation, "empty response")
        return text

    def _json(self, operation: str, response: Any, schema: type[_Payload]) -> Any:
        text = self._text(operation, response)
        try:
            return schema.model_validate_json(text)
        except ValidationError as exc:
            log_event(LOGGER, logging.ERROR, "stylist_payload_invalid", operation=operation, errors=exc.error_count())
            raise StylistServiceError(operation, "response did not match the expected schema") from exc

    @instrument_call("analyze_clothing_item")
    def analyze_clothing_item(self, image: ImageInput) -> ClothingAnalysis:
        prompt = (
            "Analyze this clothing item and describe it. Respond with JSON containing "
            "'type' (a concise one-word item type such as 'T-Shirt', 'Jeans' or 'Sneakers'), "
            "'color' (the dominant color), 'pattern' (e.g. 'solid', 'striped', 'floral') and "
            "'style' (e.g. 'casual', 'formal', 'sporty')."
        )
        response = self._generate("analyze_clothing_item", self.text_model, [image.as_part(), prompt], True)
        payload = self._json("analyze_clothing_item", response, _ClothingAnalysisPayload)
        return ClothingAnalysis(
            name=payload.name or payload.type,
            type=payload.type,
            color=payload.color,
            pattern=payload.pattern,
            style=payload.style,
        )

    @instrument_call("analyze_skin_tone")
    def analyze_skin_tone(self, image: ImageInput) -> SkinToneAnalysis:
        prompt = (
            "Analyze the skin tone of the person in this image and suggest a flattering palette "
            "of 5 colors. Respond with JSON containing 'skinTone' (e.g. 'Fair with cool undertones') "
            "and 'colorPalette', a list of objects with 'name' and 'hex' ('#RRGGBB')."
        )
        response = self._generate("analyze_skin_tone", self.text_model, [image.as_part(), prompt], True)
        payload = self._json("analyze_skin_tone", response, _SkinTonePayload)
        palette = []
        for color in payload.color_palette:
            try:
                palette.append(ColorInfo(name=color.name, hex=color.hex))
            except ValueError:
                log_event(LOGGER, logging.WARNING, "palette_color_dropped", hex=color.hex)
        return SkinToneAnalysis(skin_tone=payload.skin_tone, color_palette=palette)

    @instrument_call("generate_outfit")
    def generate_outfit(
        self, available_items: Sequence[ClothingItem], profile: UserProfile, occasion: str
    ) -> OutfitProposal:
        items = [item for item in available_items if item.is_available]
        prompt = (
            f"You are a fashion stylist. Based on the user's profile and available wardrobe, "
            f"create an outfit for a '{occasion}' occasion.\n"
            f"User Profile: {json.dumps(profile_to_payload(profile))}\n"
            f"Available Wardrobe: {_wardrobe_summary(items)}\n"
            "Suggest one top, one bottom, and optionally shoes or an accessory, using item names "
            "from the wardrobe. The outfit should be stylish and coherent. Respond with JSON "
            "containing 'outfit' (keys 'top', 'bottom', 'shoes', 'accessory') and "
            "'justification' (a brief explanation of why the outfit works)."
        )
        response = self._generate("generate_outfit", self.text_model, prompt, True)
        payload = self._json("generate_outfit", response, _OutfitPayload)
        outfit = {role: name for role, name in payload.outfit.items() if name}
        return OutfitProposal(outfit=outfit, justification=payload.justification)

    @instrument_call("virtual_try_on")
    def virtual_try_on(self, person: ImageInput, garments: TryOnGarments) -> str:
        garments.require_any()
        parts: List[Any] = [person.as_part()]
        instructions = []
        if garments.upper:
            parts.append(garments.upper.as_part())
            instructions.append("wear the upper body clothing, replacing their current top")
        if garments.lower:
            parts.append(garments.lower.as_part())
            instructions.append("wear the lower body clothing, replacing their current bottoms")
        if garments.accessory:
            parts.append(garments.accessory.as_part())
            instructions.append("wear the accessory")
        parts.append(
            f"Edit the first image of the person to make them {' and '.join(instructions)}. "
            "Maintain the original background and person's pose."
        )
        response = self._generate("virtual_try_on", self.image_model, parts)
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is not None and getattr(inline, "data", None):
                    return ImageInput(data=inline.data, mime_type=inline.mime_type or "image/png").to_data_url()
        raise StylistServiceError("virtual_try_on", "Could not generate try-on image.")

    @instrument_call("fashion_trends")
    def fashion_trends(self, region: str) -> str:
        prompt = (
            f"What are the top 5 current fashion trends for this season in {region}? "
            "Provide a concise summary."
        )
        return self._text("fashion_trends", self._generate("fashion_trends", self.text_model, prompt))

    @instrument_call("shopping_advice")
    def shopping_advice(
        self, item_description: str, wardrobe: Sequence[ClothingItem], profile: UserProfile
    ) -> str:
        prompt = (
            f'A user is thinking about buying: "{item_description}".\n'
            "Based on their existing wardrobe and style profile, is this a good purchase? "
            "How would it pair with items they already own? Suggest 2-3 outfit combinations.\n"
            f"User Profile: {json.dumps(profile_to_payload(profile))}\n"
            f"Existing Wardrobe: {_wardrobe_summary(wardrobe, include_name=False)}"
        )
        return self._text("shopping_advice", self._generate("shopping_advice", self.text_model, prompt))


class MockStylistClient(StylistClient):
    """Offline deterministic client for local runs and tests."""

    def __init__(
        self,
        analysis: ClothingAnalysis | None = None,
        skin_tone: SkinToneAnalysis | None = None,
        outfit: OutfitProposal | None = None,
    ) -> None:
        self.analysis = analysis or ClothingAnalysis(
            name="T-Shirt", type="T-Shirt", color="white", pattern="solid", style="casual"
        )
        self.skin_tone = skin_tone or SkinToneAnalysis(
            skin_tone="Medium with warm undertones",
            color_palette=[
                ColorInfo(name="Olive", hex="#708238"),
                ColorInfo(name="Terracotta", hex="#E2725B"),
                ColorInfo(name="Mustard", hex="#FFDB58"),
                ColorInfo(name="Cream", hex="#FFFDD0"),
                ColorInfo(name="Teal", hex="#008080"),
            ],
        )
        self.outfit = outfit
        self.calls: List[str] = []

    def analyze_clothing_item(self, image: ImageInput) -> ClothingAnalysis:
        self.calls.append("analyze_clothing_item")
        return self.analysis

    def analyze_skin_tone(self, image: ImageInput) -> SkinToneAnalysis:
        self.calls.append("analyze_skin_tone")
        return self.skin_tone

    def generate_outfit(
        self, available_items: Sequence[ClothingItem], profile: UserProfile, occasion: str
    ) -> OutfitProposal:
        self.calls.append("generate_outfit")
        if self.outfit is not None:
            return self.outfit
        items = [item for item in available_items if item.is_available]
        if len(items) < len(REQUIRED_OUTFIT_ROLES):
            raise StylistServiceError("generate_outfit", "not enough items to compose an outfit")
        outfit = {role: item.name for role, item in zip(OUTFIT_ROLES, items)}
        return OutfitProposal(outfit=outfit, justification=f"A simple {occasion} look built from your wardrobe.")

    def virtual_try_on(self, person: ImageInput, garments: TryOnGarments) -> str:
        self.calls.append("virtual_try_on")
        garments.require_any()
        return person.to_data_url()

    def fashion_trends(self, region: str) -> str:
        self.calls.append("fashion_trends")
        return f"Trends in {region}: relaxed tailoring, earth tones, statement outerwear, loafers, layered knits."

    def shopping_advice(
        self, item_description: str, wardrobe: Sequence[ClothingItem], profile: UserProfile
    ) -> str:
        self.calls.append("shopping_advice")
        return f"{item_description} would pair with {len(wardrobe)} items you already own."


__all__ = [
    "GeminiStylistClient",
    "ImageInput",
    "MockStylistClient",
    "OUTFIT_ROLES",
    "OutfitProposal",
    "SkinToneAnalysis",
    "StylistClient",
    "TryOnGarments",
]
