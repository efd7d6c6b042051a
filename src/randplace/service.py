"""Location orchestration — cache-or-build the weighted table, sample, resolve."""

from __future__ import annotations

import asyncio
import logging
import random

from randplace.cache import WeightedTableCache
from randplace.db.models import FallbackPolicy, LocationDetail, WeightedTable
from randplace.errors import NotFoundError
from randplace.providers.weights import BaseWeightProvider
from randplace.store import LocationStore
from randplace.strategies import get_strategy
from randplace.weighting import transform

logger = logging.getLogger(__name__)

DEFAULT_MODE = "population"
DEFAULT_UNIFORM_MIN_POPULATION = 50000


class LocationService:
    """Answers "one random location" requests. Holds no per-request state."""

    def __init__(
        self,
        weights: BaseWeightProvider,
        store: LocationStore,
        table_cache: WeightedTableCache,
        fallback: FallbackPolicy = FallbackPolicy.MISSING_MAPPING,
        uniform_min_population: int = DEFAULT_UNIFORM_MIN_POPULATION,
        rng: random.Random | None = None,
    ):
        self.weights = weights
        self.store = store
        self.table_cache = table_cache
        self.fallback = fallback
        self.uniform_min_population = uniform_min_population
        self.rng = rng

    async def rebuild_table(self) -> WeightedTable:
        """Fetch weights, load candidates, transform, and overwrite the cache slot."""
        cfg = await self.weights.fetch()
        rows = self.store.load_candidates(cfg.base_population)
        table = transform(rows, cfg, self.fallback)
        self.table_cache.put(table)
        logger.info(
            "Cached weighted table: %d entries from %d candidates (population >= %d, fallback=%s)",
            len(table), len(rows), cfg.base_population, self.fallback.value,
        )
        return table

    async def weighted_table(self) -> WeightedTable:
        table = self.table_cache.get()
        if table is not None:
            logger.debug("Weighted table cache hit (%d entries)", len(table))
            return table
        logger.info("Weighted table cache miss; rebuilding")
        return await self.rebuild_table()

    async def random_location(self, mode: str = DEFAULT_MODE) -> list[LocationDetail]:
        """Pick one location with the named strategy and return its full row."""
        strategy = get_strategy(mode)
        location_id = await strategy.pick_id(self)
        try:
            location = self.store.get_location(location_id)
        except NotFoundError:
            strategy.on_stale_id(self, location_id)
            raise
        return [location]

    def random_location_sync(self, mode: str = DEFAULT_MODE) -> list[LocationDetail]:
        """Synchronous wrapper around random_location."""
        return asyncio.run(self.random_location(mode))

    def rebuild_table_sync(self) -> WeightedTable:
        """Synchronous wrapper around rebuild_table."""
        return asyncio.run(self.rebuild_table())
