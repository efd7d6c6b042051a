"""Parse GeoNames ``cities15000.txt`` dumps into location rows."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from randplace.db.models import LocationDetail

logger = logging.getLogger(__name__)

# Column positions in the tab-separated GeoNames "geoname" table
_GEONAMEID, _NAME, _ASCIINAME, _ALTERNATENAMES = 0, 1, 2, 3
_LATITUDE, _LONGITUDE, _FCLASS = 4, 5, 6
_COUNTRY = 8
_POPULATION, _ELEVATION = 14, 15
_TIMEZONE, _MODDATE = 17, 18
_N_COLUMNS = 19


def _int_or_none(value: str) -> int | None:
    value = value.strip()
    return int(value) if value else None


def parse_line(fields: list[str]) -> LocationDetail:
    """Convert one split GeoNames line into a LocationDetail."""
    if len(fields) < _N_COLUMNS:
        raise ValueError(f"expected {_N_COLUMNS} columns, got {len(fields)}")
    return LocationDetail(
        geonameid=int(fields[_GEONAMEID]),
        name=fields[_NAME],
        asciiname=fields[_ASCIINAME],
        alternatenames=fields[_ALTERNATENAMES] or None,
        latitude=float(fields[_LATITUDE]),
        longitude=float(fields[_LONGITUDE]),
        fclass=fields[_FCLASS] or None,
        country=fields[_COUNTRY],
        population=_int_or_none(fields[_POPULATION]) or 0,
        elevation=_int_or_none(fields[_ELEVATION]),
        timezone=fields[_TIMEZONE] or None,
        moddate=fields[_MODDATE] or None,
    )


def iter_locations(lines: Iterable[str]) -> Iterator[LocationDetail]:
    """Yield parsed rows, skipping (and logging) lines that do not parse."""
    reader = csv.reader(lines, delimiter="\t", quoting=csv.QUOTE_NONE)
    for lineno, fields in enumerate(reader, 1):
        if not fields:
            continue
        try:
            yield parse_line(fields)
        except ValueError as exc:
            logger.warning("Skipping line %d: %s", lineno, exc)


def read_dump(path: Path) -> Iterator[LocationDetail]:
    """Stream rows from a ``cities15000.txt`` file on disk."""
    with open(path, encoding="utf-8", newline="") as f:
        yield from iter_locations(f)
