"""Uniform selection among locations above a population floor."""

from __future__ import annotations

import random
from typing import TYPE_CHECKING

from randplace.errors import EmptyDistributionError
from randplace.strategies.base import BaseStrategy, register_strategy

if TYPE_CHECKING:
    from randplace.service import LocationService


@register_strategy
class UniformStrategy(BaseStrategy):
    name = "uniform"
    description = "Every location above the population floor is equally likely (no weighting, no cache)"

    async def pick_id(self, service: LocationService) -> int:
        floor = service.uniform_min_population
        n = service.store.count_locations(floor)
        if n == 0:
            raise EmptyDistributionError(f"no locations with population >= {floor}")
        offset = (service.rng or random).randrange(n)
        return service.store.location_id_at(floor, offset)
