"""Durable key/value stores holding typed application state."""
from __future__ import annotations

import json
import logging
import os
import re
import sqlite3
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from models.errors import StoreClosedError
from stylist_app.logging_config import log_event

LOGGER = logging.getLogger(__name__)
T = TypeVar("T")
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


@dataclass(frozen=True)
class Codec(Generic[T]):
    """Converts a typed value to and from a JSON-compatible structure."""

    encode: Callable[[T], Any]
    decode: Callable[[Any], T]


def _identity(value: Any) -> Any:
    return value


JSON_CODEC: Codec[Any] = Codec(encode=_identity, decode=_identity)


def validate_key(key: str) -> str:
    if not key or not _KEY_PATTERN.match(key):
        raise ValueError(f"Invalid store key {key!r}")
    return key


class PersistentStore:
    """Typed load/save on top of a raw string backend.

    Subclasses implement ``_read_raw``/``_write_raw``; each write of one key
    must be atomic. Writes to the same key are serialised here.
    """

    def __init__(self) -> None:
        self._closed = False
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _read_raw(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write_raw(self, key: str, raw: str) -> None:
        raise NotImplementedError

    def _key_lock(self, key: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Persistent store is closed")

    def load(self, key: str, default: T, codec: Codec[T] = JSON_CODEC) -> T:
        """Return the stored value for ``key`` or persist and return ``default``."""

        validate_key(key)
        self._ensure_open()
        with self._key_lock(key):
            try:
                raw = self._read_raw(key)
                if raw is not None:
                    return codec.decode(json.loads(raw))
                log_event(LOGGER, logging.DEBUG, "store_value_missing", key=key)
            except (UnicodeDecodeError, ValueError, TypeError, KeyError) as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "store_value_corrupt",
                    key=key,
                    error=type(exc).__name__,
                )
            self._write_raw(key, json.dumps(codec.encode(default)))
        return default

    def save(self, key: str, value: T, codec: Codec[T] = JSON_CODEC) -> None:
        """Durably replace the value stored under ``key``."""

        validate_key(key)
        self._ensure_open()
        raw = json.dumps(codec.encode(value))
        with self._key_lock(key):
            self._ensure_open()
            self._write_raw(key, raw)
        log_event(LOGGER, logging.DEBUG, "store_value_saved", key=key, size=len(raw))

    def close(self) -> None:
        self._closed = True


class MemoryStore(PersistentStore):
    """Process-local store; values still pass through JSON encoding."""

    def __init__(self) -> None:
        super().__init__()
        self._values: Dict[str, str] = {}

    def _read_raw(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def _write_raw(self, key: str, raw: str) -> None:
        self._values[key] = raw


class JSONFileStore(PersistentStore):
    """One JSON document per key inside ``base_dir``."""

    def __init__(self, base_dir: str | Path = "data/store") -> None:
        super().__init__()
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def _read_raw(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write_raw(self, key: str, raw: str) -> None:
        # Readers see either the old file or the new one, never a partial write.
        fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(raw)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class SQLiteStore(PersistentStore):
    """SQLite-backed store with one row per key."""

    def __init__(self, db_path: str | Path = "data/stylist.db") -> None:
        super().__init__()
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL
                );
                """
            )

    def _read_raw(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def _write_raw(self, key: str, raw: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)\n"
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                (key, raw, time.time()),
            )


class PersistentValue(Generic[T]):
    """A single stored value that reads like a variable and saves on every write."""

    def __init__(self, store: PersistentStore, key: str, default: T, codec: Codec[T] = JSON_CODEC) -> None:
        self.store = store
        self.key = key
        self.codec = codec
        self._lock = threading.RLock()
        self._value = store.load(key, default, codec)

    def get(self) -> T:
        return self._value

    def set(self, value: T) -> T:
        with self._lock:
            self.store.save(self.key, value, self.codec)
            self._value = value
            return value

    def update(self, func: Callable[[T], T]) -> T:
        """Compute the next value from the current one and store it."""

        with self._lock:
            return self.set(func(self._value))


def build_store(backend: str, path: Optional[str] = None) -> PersistentStore:
    backend = backend.lower()
    if backend == "sqlite":
        return SQLiteStore(path or "data/stylist.db")
    if backend == "memory":
        return MemoryStore()
    if backend == "json":
        return JSONFileStore(path or "data/store")
    raise ValueError(f"Unsupported store backend {backend!r}")


__all__ = [
    "Codec",
    "JSON_CODEC",
    "JSONFileStore",
    "MemoryStore",
    "PersistentStore",
    "PersistentValue",
    "SQLiteStore",
    "build_store",
    "validate_key",
]
