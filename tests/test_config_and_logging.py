"""Configuration loading and structured logging tests."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from stylist_app.config import DEFAULT_TEXT_MODEL, StylistConfig
from stylist_app.logging_config import (
    CORRELATION_ID,
    JsonFormatter,
    configure_logging,
    correlation_context,
    log_event,
    scrub,
)

_ENV_KEYS = [
    "APP_ENV",
    "APP_CONFIG_PATH",
    "GOOGLE_API_KEY",
    "API_KEY",
    "TEXT_MODEL",
    "STORE_BACKEND",
    "STORE_PATH",
    "LAUNDRY_DURATION_SECONDS",
    "SWEEP_INTERVAL_SECONDS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = StylistConfig.from_env()

    assert config.text_model == DEFAULT_TEXT_MODEL
    assert config.store_backend == "json"
    assert config.laundry_duration_ms == 172_800_000
    assert config.sweep_interval_seconds == 3600
    assert config.google_api_key is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("API_KEY", "secret")
    monkeypatch.setenv("STORE_BACKEND", "SQLite")
    monkeypatch.setenv("LAUNDRY_DURATION_SECONDS", "60")
    monkeypatch.setenv("SWEEP_INTERVAL_SECONDS", "0.5")

    config = StylistConfig.from_env()

    assert config.google_api_key == "secret"
    assert config.store_backend == "sqlite"
    assert config.resolved_store_path == "data/stylist.db"
    assert config.laundry_duration_ms == 60_000
    assert config.sweep_interval_seconds == 0.5


def test_yaml_file_is_merged_under_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_file = tmp_path / "dev.yaml"
    config_file.write_text('# local\nstore_backend: memory\ntext_model: "gemini-test"\nstore_path: /tmp/x\n')
    monkeypatch.setenv("APP_CONFIG_PATH", str(config_file))
    monkeypatch.setenv("STORE_PATH", "/tmp/override")

    config = StylistConfig.from_env()

    assert config.store_backend == "memory"
    assert config.text_model == "gemini-test"
    assert config.store_path == "/tmp/override"


def test_invalid_values_are_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAUNDRY_DURATION_SECONDS", "two days")
    with pytest.raises(ValueError):
        StylistConfig.from_env()

    with pytest.raises(ValueError):
        StylistConfig(store_backend="redis")
    with pytest.raises(ValueError):
        StylistConfig(sweep_interval_seconds=0)


def test_scrub_masks_images_and_urls() -> None:
    scrubbed = scrub(
        {
            "imageUrl": "data:image/png;base64,AAAA",
            "note": "mail me at a@b.com",
            "source": "https://example.com/x.png",
            "inline": "data:image/png;base64,AAAA",
            "count": 3,
            "raw": b"1234",
            "garments": {"upper": "AAAA", "kind": "tee"},
        }
    )

    assert scrubbed == {
        "imageUrl": "[redacted]",
        "note": "mail me at [redacted-email]",
        "source": "[redacted-url]",
        "inline": "[redacted-data-url]",
        "count": 3,
        "raw": "[4 bytes]",
        "garments": {"upper": "[redacted]", "kind": "tee"},
    }


def test_json_formatter_includes_event_fields_and_correlation() -> None:
    records: list[logging.LogRecord] = []

    class _Capture(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    logger = logging.getLogger("tests.structured")
    logger.propagate = False
    logger.setLevel(logging.INFO)
    handler = _Capture()
    logger.addHandler(handler)
    try:
        with correlation_context("cid-1"):
            log_event(logger, logging.INFO, "laundry_sweep_reverted", reverted=2)
        assert CORRELATION_ID.get() is None
    finally:
        logger.removeHandler(handler)

    payload = json.loads(JsonFormatter().format(records[0]))
    assert payload["event"] == "laundry_sweep_reverted"
    assert payload["correlation_id"] == "cid-1"
    assert payload["reverted"] == 2


def test_formatter_keeps_reserved_keys_and_renders_exceptions() -> None:
    record = logging.makeLogRecord(
        {
            "name": "tests.structured",
            "levelno": logging.ERROR,
            "levelname": "ERROR",
            "msg": "image_fetch_failed",
            "event": "image_fetch_failed",
            "fields": {"level": "spoofed", "error": "ConnectionError"},
        }
    )
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "ERROR"
    assert payload["error"] == "ConnectionError"
    assert "RuntimeError: boom" in payload["exception"]


def test_configure_logging_installs_one_json_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        configure_logging("DEBUG")
        configure_logging("WARNING")

        json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
        assert len(json_handlers) == 1
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
