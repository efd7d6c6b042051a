"""Pydantic data models for randplace."""

from __future__ import annotations

import math
from enum import Enum

from pydantic import BaseModel, Field, StrictFloat, field_validator

DEFAULT_BASE_POPULATION = 49999


class FallbackPolicy(str, Enum):
    """When a row contributes its raw population instead of a weighted entry."""

    MISSING_MAPPING = "missing-mapping"  # axis mapping absent from the document
    UNMATCHED = "unmatched"  # row has no entry on that axis
    ROW = "row"  # row matches neither axis; one entry total


class WeightConfig(BaseModel):
    """Weighting document: population threshold and per-country/per-city multipliers.

    A mapping of ``None`` means the document did not carry that axis at all,
    which is distinct from an empty mapping.
    """

    base_population: int = Field(default=DEFAULT_BASE_POPULATION, ge=0, strict=True)
    country_weights: dict[str, StrictFloat] | None = None
    city_weights: dict[str, StrictFloat] | None = None

    @field_validator("country_weights", "city_weights")
    @classmethod
    def _positive_finite(cls, weights: dict[str, float] | None) -> dict[str, float] | None:
        if weights is None:
            return None
        for key, value in weights.items():
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"multiplier for {key!r} must be a positive finite number, got {value!r}")
        return weights


class CandidateRow(BaseModel):
    """Minimal projection of a location used only to compute sampling weight."""

    id: int
    population: int = Field(ge=0)
    country: str
    city_name: str


class WeightedEntry(BaseModel):
    """One (id, weight) pair of the sampling table."""

    id: int
    weight: float = Field(ge=0.0, allow_inf_nan=False)


WeightedTable = list[WeightedEntry]


class LocationDetail(BaseModel):
    """Full row of the ``cities15000`` table, in column order."""

    geonameid: int
    alternatenames: str | None = None
    asciiname: str
    country: str
    elevation: int | None = None
    fclass: str | None = None
    latitude: float
    longitude: float
    moddate: str | None = None
    name: str
    population: int
    timezone: str | None = None
