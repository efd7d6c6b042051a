"""Runtime settings, read from ``RANDPLACE_*`` environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from randplace.cache import CACHE_KEY, KeyValueCache, MemoryCache, SqliteCache, WeightedTableCache
from randplace.db.models import FallbackPolicy
from randplace.db.schema import DEFAULT_DB_NAME
from randplace.errors import ConfigurationError
from randplace.providers.weights import DEFAULT_TIMEOUT, WEIGHTS_URL, get_weight_provider
from randplace.service import DEFAULT_UNIFORM_MIN_POPULATION, LocationService
from randplace.store import LocationStore

ENV_PREFIX = "RANDPLACE_"


class Settings(BaseModel):
    """Everything needed to wire a LocationService and its HTTP endpoint."""

    db_path: Path = Path(DEFAULT_DB_NAME)
    cache_path: Path | None = None  # None: in-memory cache
    cache_ttl: float | None = Field(default=None, gt=0)
    cache_key: str = CACHE_KEY
    weights_url: str = WEIGHTS_URL
    http_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    fallback: FallbackPolicy = FallbackPolicy.MISSING_MAPPING
    uniform_min_population: int = Field(default=DEFAULT_UNIFORM_MIN_POPULATION, ge=0)
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=0, le=65535)
    base_path: str = ""

    def build_cache(self) -> KeyValueCache:
        if self.cache_path is None:
            return MemoryCache(ttl_seconds=self.cache_ttl)
        return SqliteCache(self.cache_path, ttl_seconds=self.cache_ttl)

    def build_service(self) -> LocationService:
        return LocationService(
            weights=get_weight_provider(self.weights_url, timeout=self.http_timeout),
            store=LocationStore(self.db_path),
            table_cache=WeightedTableCache(self.build_cache(), key=self.cache_key),
            fallback=self.fallback,
            uniform_min_population=self.uniform_min_population,
        )


def load_settings(environ: Mapping[str, str] | None = None, dotenv: bool = True, **overrides) -> Settings:
    """Build Settings from ``RANDPLACE_*`` variables, then apply non-None overrides."""
    if dotenv and environ is None:
        load_dotenv(Path.cwd() / ".env")
    env = os.environ if environ is None else environ
    fields: dict[str, object] = {}
    for name in Settings.model_fields:
        value = env.get(ENV_PREFIX + name.upper())
        if value not in (None, ""):
            fields[name] = value
    fields.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Settings(**fields)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc
