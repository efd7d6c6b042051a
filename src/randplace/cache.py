"""Key/value cache backends and the single-slot weighted table cache."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from randplace.db.models import WeightedEntry, WeightedTable
from randplace.db.schema import init_cache_db
from randplace.errors import CacheStoreError

logger = logging.getLogger(__name__)

CACHE_KEY = "city-pop-pair"

_PAIRS = TypeAdapter(list[tuple[int, float]])


class KeyValueCache(ABC):
    """Byte-valued cache store. Expiry, if any, is the backend's own policy."""

    @abstractmethod
    def get(self, key: str) -> bytes | None:
        ...

    @abstractmethod
    def set(self, key: str, value: bytes) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryCache(KeyValueCache):
    """In-process cache; lives as long as the process."""

    def __init__(self, ttl_seconds: float | None = None):
        self.ttl_seconds = ttl_seconds
        self._data: dict[str, tuple[bytes, float | None]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> bytes | None:
        with self._lock:
            item = self._data.get(key)
            if item is None:
                return None
            value, expires_at = item
            if expires_at is not None and time.monotonic() >= expires_at:
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: bytes) -> None:
        expires_at = time.monotonic() + self.ttl_seconds if self.ttl_seconds is not None else None
        with self._lock:
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SqliteCache(KeyValueCache):
    """Cache persisted in a SQLite file, shared across processes."""

    def __init__(self, db_path: Path | str, ttl_seconds: float | None = None):
        self.ttl_seconds = ttl_seconds
        self._lock = threading.Lock()
        try:
            self.conn = init_cache_db(db_path)
        except (sqlite3.Error, OSError) as exc:
            raise CacheStoreError(f"cannot open cache at {db_path}: {exc}") from exc

    def get(self, key: str) -> bytes | None:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT value, expires_at FROM kv_cache WHERE key = ?", (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise CacheStoreError(f"cache read failed: {exc}") from exc
        if row is None:
            return None
        value, expires_at = row
        if expires_at is not None and time.time() >= expires_at:
            return None
        return bytes(value)

    def set(self, key: str, value: bytes) -> None:
        expires_at = time.time() + self.ttl_seconds if self.ttl_seconds is not None else None
        try:
            with self._lock:
                self.conn.execute(
                    "INSERT OR REPLACE INTO kv_cache (key, value, expires_at) VALUES (?, ?, ?)",
                    (key, value, expires_at),
                )
                self.conn.commit()
        except sqlite3.Error as exc:
            raise CacheStoreError(f"cache write failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._lock:
                self.conn.execute("DELETE FROM kv_cache WHERE key = ?", (key,))
                self.conn.commit()
        except sqlite3.Error as exc:
            raise CacheStoreError(f"cache delete failed: {exc}") from exc


def encode_table(table: WeightedTable) -> bytes:
    """Serialize as a JSON array of ``[id, weight]`` pairs."""
    return json.dumps([[e.id, e.weight] for e in table]).encode("utf-8")


def decode_table(data: bytes) -> WeightedTable:
    try:
        pairs = _PAIRS.validate_json(data)
        return [WeightedEntry(id=i, weight=w) for i, w in pairs]
    except ValidationError as exc:
        raise CacheStoreError(f"cached table is corrupt: {exc.error_count()} error(s)") from exc


class WeightedTableCache:
    """One weighted table under one fixed key. Last writer wins."""

    def __init__(self, backend: KeyValueCache, key: str = CACHE_KEY):
        self.backend = backend
        self.key = key

    def get(self) -> WeightedTable | None:
        data = self.backend.get(self.key)
        if data is None:
            return None
        return decode_table(data)

    def put(self, table: WeightedTable) -> None:
        self.backend.set(self.key, encode_table(table))

    def invalidate(self) -> None:
        logger.info("Invalidating cached table %r", self.key)
        self.backend.delete(self.key)
