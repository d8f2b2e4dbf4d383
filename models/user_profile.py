"""User style profile model and palette helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Tuple

from models.errors import InvalidColorError

_HEX_PATTERN = re.compile(r"^#([0-9A-F]{3}){1,2}$", re.IGNORECASE)
DEFAULT_PREFERRED_STYLES = ("casual", "chic")
DEFAULT_REGION = "US"


def normalize_hex(value: str) -> str:
    """Return ``value`` as an upper-case ``#RGB``/``#RRGGBB`` code."""

    candidate = (value or "").strip()
    if not candidate.startswith("#"):
        candidate = "#" + candidate.replace("#", "")
    if not _HEX_PATTERN.match(candidate):
        raise InvalidColorError(f"Invalid hex color {value!r}")
    return candidate.upper()


@dataclass(frozen=True)
class ColorInfo:
    """A named colour from the user's flattering palette."""

    name: str
    hex: str

    def __post_init__(self) -> None:
        name = (self.name or "").strip()
        if not name:
            raise InvalidColorError("Color name is required")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "hex", normalize_hex(self.hex))


def parse_styles(raw: str | Iterable[str]) -> Tuple[str, ...]:
    """Split a comma separated style list, dropping blanks."""

    values = raw.split(",") if isinstance(raw, str) else list(raw)
    return tuple(str(value).strip() for value in values if str(value).strip())


@dataclass(frozen=True)
class UserProfile:
    """Stylistic context used for outfit and shopping suggestions."""

    skin_tone: str = ""
    color_palette: Tuple[ColorInfo, ...] = field(default_factory=tuple)
    preferred_styles: Tuple[str, ...] = DEFAULT_PREFERRED_STYLES
    region: str = DEFAULT_REGION

    def __post_init__(self) -> None:
        object.__setattr__(self, "color_palette", tuple(self.color_palette))
        object.__setattr__(self, "preferred_styles", parse_styles(self.preferred_styles))

    def with_color(self, color: ColorInfo) -> "UserProfile":
        return replace(self, color_palette=self.color_palette + (color,))

    def without_color(self, hex_code: str) -> "UserProfile":
        target = normalize_hex(hex_code)
        return replace(self, color_palette=tuple(c for c in self.color_palette if c.hex != target))

    def with_skin_analysis(self, skin_tone: str, palette: Iterable[ColorInfo]) -> "UserProfile":
        return replace(self, skin_tone=skin_tone, color_palette=tuple(palette))

    def palette_hexes(self) -> List[str]:
        return [color.hex for color in self.color_palette]


def default_profile() -> UserProfile:
    return UserProfile()


__all__ = ["ColorInfo", "UserProfile", "default_profile", "normalize_hex", "parse_styles"]
