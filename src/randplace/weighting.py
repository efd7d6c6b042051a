"""Weight transformer — turns candidate rows into the sampling table.

Country and city multipliers are applied as two independent passes over the
same row: a row matching both rules yields two entries, so the two factors
compound by duplication rather than by multiplication.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from randplace.db.models import CandidateRow, FallbackPolicy, WeightConfig, WeightedEntry, WeightedTable
from randplace.errors import ConfigParseError


def _axis_entry(
    row: CandidateRow,
    weights: dict[str, float] | None,
    key: str,
    fallback: FallbackPolicy,
) -> tuple[WeightedEntry | None, bool]:
    """Entry contributed by one axis, and whether the row matched it."""
    population = float(row.population)
    if weights is not None and key in weights:
        weight = population * weights[key]
        if not math.isfinite(weight):
            raise ConfigParseError(
                f"multiplier {weights[key]!r} for {key!r} overflows the weight of location {row.id} "
                f"(population {row.population})"
            )
        return WeightedEntry(id=row.id, weight=weight), True
    if fallback is FallbackPolicy.UNMATCHED:
        return WeightedEntry(id=row.id, weight=population), False
    if fallback is FallbackPolicy.MISSING_MAPPING and weights is None:
        return WeightedEntry(id=row.id, weight=population), False
    return None, False


def transform(
    rows: Iterable[CandidateRow],
    cfg: WeightConfig,
    fallback: FallbackPolicy = FallbackPolicy.MISSING_MAPPING,
) -> WeightedTable:
    """Build the weighted table for ``rows`` under ``cfg``.

    Per row: a country entry when the country has a multiplier, then a city
    entry when the city name has one. ``fallback`` decides when the raw
    population is used instead; see :class:`FallbackPolicy`.
    """
    table: WeightedTable = []
    for row in rows:
        country, country_hit = _axis_entry(row, cfg.country_weights, row.country, fallback)
        city, city_hit = _axis_entry(row, cfg.city_weights, row.city_name, fallback)
        if country is not None:
            table.append(country)
        if city is not None:
            table.append(city)
        if fallback is FallbackPolicy.ROW and not (country_hit or city_hit):
            table.append(WeightedEntry(id=row.id, weight=float(row.population)))
    return table
