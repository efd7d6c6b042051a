"""Population-weighted selection from the cached weighted table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from randplace.sampler import sample
from randplace.strategies.base import BaseStrategy, register_strategy

if TYPE_CHECKING:
    from randplace.service import LocationService

logger = logging.getLogger(__name__)


@register_strategy
class PopulationStrategy(BaseStrategy):
    name = "population"
    description = "Probability proportional to population, scaled by country/city multipliers"

    async def pick_id(self, service: LocationService) -> int:
        table = await service.weighted_table()
        entry = sample(table, service.rng)
        logger.debug("Sampled id=%d weight=%.1f from %d entries", entry.id, entry.weight, len(table))
        return entry.id

    def on_stale_id(self, service: LocationService, location_id: int) -> None:
        # Table predates a data change; the next request rebuilds it
        logger.warning("Sampled id %d is gone; dropping the cached table", location_id)
        service.table_cache.invalidate()
