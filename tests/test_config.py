"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from randplace.cache import MemoryCache, SqliteCache
from randplace.config import load_settings
from randplace.db.models import FallbackPolicy
from randplace.errors import ConfigurationError
from randplace.providers.weights import FileWeightProvider, HttpWeightProvider


def test_defaults():
    settings = load_settings(environ={})
    assert settings.db_path == Path("geoname.db")
    assert settings.cache_path is None
    assert settings.cache_key == "city-pop-pair"
    assert settings.fallback is FallbackPolicy.MISSING_MAPPING
    assert settings.port == 3000


def test_env_values():
    settings = load_settings(environ={
        "RANDPLACE_DB_PATH": "/data/geo.db",
        "RANDPLACE_CACHE_TTL": "300",
        "RANDPLACE_FALLBACK": "unmatched",
        "RANDPLACE_PORT": "8080",
        "RANDPLACE_HOST": "",
    })
    assert settings.db_path == Path("/data/geo.db")
    assert settings.cache_ttl == 300.0
    assert settings.fallback is FallbackPolicy.UNMATCHED
    assert settings.port == 8080
    assert settings.host == "127.0.0.1"


def test_overrides_win_over_env():
    settings = load_settings(environ={"RANDPLACE_PORT": "8080"}, port=9000, host=None)
    assert settings.port == 9000
    assert settings.host == "127.0.0.1"


@pytest.mark.parametrize("name,value", [
    ("RANDPLACE_FALLBACK", "sometimes"),
    ("RANDPLACE_PORT", "http"),
    ("RANDPLACE_CACHE_TTL", "-5"),
])
def test_invalid_values(name, value):
    with pytest.raises(ConfigurationError):
        load_settings(environ={name: value})


def test_build_service(tmp_path):
    settings = load_settings(environ={}, db_path=tmp_path / "g.db")
    service = settings.build_service()
    assert isinstance(service.table_cache.backend, MemoryCache)
    assert isinstance(service.weights, HttpWeightProvider)

    settings = load_settings(
        environ={}, cache_path=tmp_path / "cache.db", weights_url=str(tmp_path / "w.hjson"),
    )
    service = settings.build_service()
    assert isinstance(service.table_cache.backend, SqliteCache)
    assert isinstance(service.weights, FileWeightProvider)
