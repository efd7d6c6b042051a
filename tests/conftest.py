"""Shared fixtures: a small GeoNames database and in-memory service wiring."""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from randplace.cache import MemoryCache, WeightedTableCache
from randplace.db.models import LocationDetail, WeightConfig
from randplace.providers.weights import StaticWeightProvider
from randplace.service import LocationService
from randplace.store import LocationStore


def make_location(geonameid: int, name: str, country: str, population: int, **extra) -> LocationDetail:
    fields = dict(
        geonameid=geonameid,
        name=name,
        asciiname=name,
        alternatenames=None,
        latitude=10.0 + geonameid,
        longitude=20.0 + geonameid,
        fclass="P",
        country=country,
        population=population,
        elevation=None,
        timezone="UTC",
        moddate="2024-01-01",
    )
    fields.update(extra)
    return LocationDetail(**fields)


LOCATIONS = [
    make_location(1, "Springfield", "US", 120_000),
    make_location(2, "Lyon", "FR", 500_000, timezone="Europe/Paris"),
    make_location(3, "Seoul", "KR", 9_700_000, timezone="Asia/Seoul"),
    make_location(4, "Hamlet", "FR", 20_000),
]


class CountingProvider(StaticWeightProvider):
    """StaticWeightProvider that records how often it was asked."""

    def __init__(self, config: WeightConfig):
        super().__init__(config)
        self.calls = 0

    async def fetch(self) -> WeightConfig:
        self.calls += 1
        return await super().fetch()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "geoname.db"
    LocationStore(path).import_locations(LOCATIONS)
    return path


@pytest.fixture
def store(db_path: Path) -> LocationStore:
    return LocationStore(db_path)


@pytest.fixture
def table_cache() -> WeightedTableCache:
    return WeightedTableCache(MemoryCache())


@pytest.fixture
def provider() -> CountingProvider:
    return CountingProvider(WeightConfig(base_population=50_000, country_weights={"KR": 0.5}, city_weights={"Lyon": 2.0}))


@pytest.fixture
def service(provider, store, table_cache) -> LocationService:
    return LocationService(provider, store, table_cache, rng=random.Random(1234))
