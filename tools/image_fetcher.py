"""Fetch garment or portrait images from HTTP(S) URLs."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import requests
from pydantic import BaseModel, Field

from models.errors import StylistError
from stylist_app.logging_config import log_event
from tools.observability import instrument_call
from tools.stylist_client import ImageInput

LOGGER = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class InvalidImageURLError(StylistError, ValueError):
    """Raised when the provided URL is not a valid HTTP or HTTPS URL."""

    user_message = "Please provide an http or https image URL."


class ImageFetchError(StylistError, RuntimeError):
    """Raised when the image cannot be retrieved or is not an image."""

    user_message = "Could not download that image. Please try another one."


class ImageFetchInput(BaseModel):
    url: str = Field(min_length=1)
    timeout: Optional[float] = Field(default=10.0, gt=0)


def _validate_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise InvalidImageURLError(f"Unsupported or invalid URL: {url}")


@instrument_call("fetch_image", input_model=ImageFetchInput)
def fetch_image(*, url: str, timeout: Optional[float] = 10.0) -> ImageInput:
    """Download an image for analysis.

    Args:
        url: HTTP or HTTPS URL of the image.
        timeout: Optional network timeout in seconds.

    Returns:
        The image bytes together with the MIME type reported by the server.

    Raises:
        InvalidImageURLError: If the URL is not HTTP/HTTPS or missing a host.
        ImageFetchError: For network issues, non-2xx responses, non-image
            content or oversized bodies.
    """

    _validate_url(url)
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        log_event(LOGGER, logging.ERROR, "image_fetch_failed", error=type(exc).__name__)
        raise ImageFetchError(f"Network error fetching {url}: {exc}") from exc

    if not 200 <= response.status_code < 300:
        log_event(LOGGER, logging.WARNING, "image_fetch_rejected", status_code=response.status_code)
        raise ImageFetchError(f"Failed to fetch {url}: HTTP {response.status_code}")

    mime_type = (response.headers.get("Content-Type") or "").split(";", 1)[0].strip().lower()
    if not mime_type.startswith("image/"):
        raise ImageFetchError(f"{url} did not return an image (Content-Type {mime_type or 'missing'})")
    if len(response.content) > MAX_IMAGE_BYTES:
        raise ImageFetchError(f"{url} exceeds the {MAX_IMAGE_BYTES} byte image limit")
    if not response.content:
        raise ImageFetchError(f"{url} returned an empty body")

    log_event(LOGGER, logging.DEBUG, "image_fetched", mime_type=mime_type, size=len(response.content))
    return ImageInput(data=response.content, mime_type=mime_type)


__all__ = ["ImageFetchError", "InvalidImageURLError", "fetch_image"]
