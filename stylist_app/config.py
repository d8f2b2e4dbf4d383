"""Configuration helpers for the Pocket Stylist service."""

from dataclasses import dataclass
from pathlib import Path
import os
from typing import Optional

DEFAULT_TEXT_MODEL = "gemini-2.5-flash"
DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"
DEFAULT_LAUNDRY_DURATION_SECONDS = 2 * 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60
STORE_BACKENDS = ("json", "sqlite", "memory")


@dataclass
class StylistConfig:
    """Configuration values for the stylist service.

    Durations are expressed in seconds here and converted to the millisecond
    clock domain by the lifecycle manager.
    """

    google_api_key: Optional[str] = None
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    store_backend: str = "json"
    store_path: Optional[str] = None
    laundry_duration_seconds: float = DEFAULT_LAUNDRY_DURATION_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    request_timeout_seconds: float = 10.0
    environment: str | None = None

    def __post_init__(self) -> None:
        self.store_backend = self.store_backend.lower()
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(f"Unsupported store backend {self.store_backend!r}; expected one of {STORE_BACKENDS}")
        if self.laundry_duration_seconds < 0:
            raise ValueError("laundry_duration_seconds cannot be negative")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be positive")

    @property
    def laundry_duration_ms(self) -> int:
        return int(self.laundry_duration_seconds * 1000)

    @property
    def resolved_store_path(self) -> str:
        if self.store_path:
            return self.store_path
        if self.store_backend == "sqlite":
            return "data/stylist.db"
        return "data/store"

    @classmethod
    def from_env(cls) -> "StylistConfig":
        """Build a config from environment variables or an environment YAML file.

        Environment specific YAML lives in ``config/environments/<env>.yaml`` by
        default and is merged with environment variables so that the API key
        can be injected by the runtime environment.
        """

        env_name = os.getenv("APP_ENV")
        config_path = os.getenv("APP_CONFIG_PATH")
        config_dir = Path(os.getenv("STYLIST_CONFIG_DIR", "config/environments"))
        yaml_config: dict = {}

        if config_path:
            path = Path(config_path)
        elif env_name:
            path = config_dir / f"{env_name}.yaml"
        else:
            path = None

        if path and path.exists():
            yaml_config = cls._load_yaml_config(path)

        def get_value(key: str, default: Optional[str] = None) -> Optional[str]:
            env_key = key.upper()
            return os.getenv(env_key, yaml_config.get(key, default))

        api_key = get_value("google_api_key") or get_value("api_key")

        return cls(
            google_api_key=api_key,
            text_model=str(get_value("text_model", DEFAULT_TEXT_MODEL) or DEFAULT_TEXT_MODEL),
            image_model=str(get_value("image_model", DEFAULT_IMAGE_MODEL) or DEFAULT_IMAGE_MODEL),
            store_backend=str(get_value("store_backend", "json") or "json"),
            store_path=get_value("store_path"),
            laundry_duration_seconds=cls._as_float(
                "laundry_duration_seconds",
                get_value("laundry_duration_seconds"),
                DEFAULT_LAUNDRY_DURATION_SECONDS,
            ),
            sweep_interval_seconds=cls._as_float(
                "sweep_interval_seconds",
                get_value("sweep_interval_seconds"),
                DEFAULT_SWEEP_INTERVAL_SECONDS,
            ),
            request_timeout_seconds=cls._as_float(
                "request_timeout_seconds", get_value("request_timeout_seconds"), 10.0
            ),
            environment=env_name,
        )

    @staticmethod
    def _as_float(key: str, raw: Optional[str], default: float) -> float:
        if raw is None or str(raw).strip() == "":
            return float(default)
        try:
            return float(raw)
        except ValueError as exc:
            raise ValueError(f"{key} must be numeric, got {raw!r}") from exc

    @staticmethod
    def _load_yaml_config(path: Path) -> dict:
        """Parse a flat ``key: value`` config file."""

        config: dict[str, str] = {}
        for line in path.read_text().splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if ":" not in stripped:
                continue
            key, raw_value = stripped.split(":", 1)
            value = raw_value.strip()
            if (value.startswith("\"") and value.endswith("\"")) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            config[key.strip()] = value
        return config


__all__ = ["StylistConfig", "DEFAULT_TEXT_MODEL", "DEFAULT_IMAGE_MODEL"]
