"""JSON logging for the stylist service.

Every record is one JSON object with an ``event`` name, the active correlation
id and the fields handed to :func:`log_event`. Garment photos, portraits and
skin-tone results are masked before they reach a handler.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
import re
import uuid
from typing import Any, Iterator, Optional

CORRELATION_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "stylist_correlation_id", default=None
)

# Event fields that carry user photos or personal colour analysis.
PRIVATE_FIELDS = frozenset(
    {
        "image_url",
        "imageUrl",
        "image_base64",
        "data_url",
        "person",
        "upper",
        "lower",
        "accessory",
        "skin_tone",
        "skinTone",
    }
)
_EMAIL = re.compile(r"[\w.\-]+@[\w.\-]+")
_MODULE_LOGGER = logging.getLogger(__name__)


def scrub(value: Any) -> Any:
    """Make an event field safe to serialise.

    Inline images and remote URLs are masked, raw bytes are replaced by their
    size and private keys inside mappings are dropped to ``[redacted]``.
    """

    if isinstance(value, bytes):
        return f"[{len(value)} bytes]"
    if isinstance(value, str):
        head = value[:8].lower()
        if head.startswith("data:"):
            return "[redacted-data-url]"
        if head.startswith(("http://", "https://")):
            return "[redacted-url]"
        return _EMAIL.sub("[redacted-email]", value)
    if isinstance(value, dict):
        return {key: "[redacted]" if key in PRIVATE_FIELDS else scrub(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [scrub(item) for item in value]
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return str(value)


class JsonFormatter(logging.Formatter):
    """Render a record as one line of JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": getattr(record, "event", None) or record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", None) or CORRELATION_ID.get(),
        }
        for key, value in getattr(record, "fields", {}).items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: int | str | None = None) -> None:
    """Attach a JSON handler to the root logger once; later calls only adjust the level."""

    root = logging.getLogger()
    root.setLevel(level or os.getenv("LOG_LEVEL", "INFO"))
    if any(isinstance(handler.formatter, JsonFormatter) for handler in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


@contextlib.contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind ``correlation_id``, or a fresh one, until the block exits."""

    bound = correlation_id or uuid.uuid4().hex
    token = CORRELATION_ID.set(bound)
    try:
        yield bound
    finally:
        CORRELATION_ID.reset(token)


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` with scrubbed ``fields``.

    ``exc_info`` and ``correlation_id`` are pulled out of ``fields`` and passed
    to the record directly.
    """

    exc_info = fields.pop("exc_info", None)
    correlation_id = fields.pop("correlation_id", None) or CORRELATION_ID.get()
    logger.log(
        level,
        event,
        exc_info=exc_info,
        extra={"event": event, "correlation_id": correlation_id, "fields": scrub(fields)},
    )


@contextlib.contextmanager
def operation_context(name: str, correlation_id: str | None = None, **attributes: Any) -> Iterator[str]:
    """Run one named operation (an HTTP request, a CLI command) under its own correlation id."""

    with correlation_context(correlation_id) as bound:
        log_event(_MODULE_LOGGER, logging.DEBUG, "operation_started", operation=name, **attributes)
        try:
            yield bound
        except Exception:
            log_event(_MODULE_LOGGER, logging.WARNING, "operation_failed", operation=name, exc_info=True)
            raise
        log_event(_MODULE_LOGGER, logging.DEBUG, "operation_completed", operation=name)


__all__ = [
    "CORRELATION_ID",
    "JsonFormatter",
    "configure_logging",
    "correlation_context",
    "log_event",
    "operation_context",
    "scrub",
]
