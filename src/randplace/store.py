"""SQLite reads (and bulk loads) against the GeoNames locations table."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from randplace.db.models import CandidateRow, LocationDetail
from randplace.db.schema import DEFAULT_DB_NAME, DETAIL_COLUMNS, init_db
from randplace.errors import NotFoundError, StoreQueryError

logger = logging.getLogger(__name__)

_DETAIL_SELECT = f"SELECT {', '.join(DETAIL_COLUMNS)} FROM cities15000"


class LocationStore:
    """Backing store of locations, one short-lived connection per operation."""

    def __init__(self, db_path: Path | str = DEFAULT_DB_NAME):
        self.db_path = str(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StoreQueryError(f"cannot open {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as exc:
            raise StoreQueryError(f"query against {self.db_path} failed: {exc}") from exc
        finally:
            conn.close()

    # ── Reads ─────────────────────────────────────────────

    def load_candidates(self, min_population: int) -> list[CandidateRow]:
        """All rows at or above ``min_population``, projected for weighting."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT geonameid, population, country, asciiname FROM cities15000 "
                "WHERE population >= ? ORDER BY geonameid",
                (min_population,),
            ).fetchall()
        return [
            CandidateRow(id=r["geonameid"], population=r["population"],
                         country=r["country"], city_name=r["asciiname"])
            for r in rows
        ]

    def get_location(self, location_id: int) -> LocationDetail:
        with self._connect() as conn:
            row = conn.execute(f"{_DETAIL_SELECT} WHERE geonameid = ?", (location_id,)).fetchone()
        if row is None:
            raise NotFoundError(f"location {location_id} not found", location_id=location_id)
        return LocationDetail(**dict(row))

    def count_locations(self, min_population: int) -> int:
        with self._connect() as conn:
            (n,) = conn.execute(
                "SELECT COUNT(*) FROM cities15000 WHERE population >= ?", (min_population,),
            ).fetchone()
        return n

    def location_id_at(self, min_population: int, offset: int) -> int:
        """Id of the ``offset``-th row (by id) at or above ``min_population``."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT geonameid FROM cities15000 WHERE population >= ? "
                "ORDER BY geonameid LIMIT 1 OFFSET ?",
                (min_population, offset),
            ).fetchone()
        if row is None:
            raise NotFoundError(f"no location at offset {offset} (population >= {min_population})")
        return row["geonameid"]

    # ── Writes ────────────────────────────────────────────

    def import_locations(self, locations: Iterable[LocationDetail], batch_size: int = 5000) -> int:
        """Upsert rows into ``cities15000``, creating the schema if needed."""
        try:
            conn = init_db(self.db_path)
        except sqlite3.Error as exc:
            raise StoreQueryError(f"cannot initialize {self.db_path}: {exc}") from exc
        placeholders = ", ".join("?" for _ in DETAIL_COLUMNS)
        sql = f"INSERT OR REPLACE INTO cities15000 ({', '.join(DETAIL_COLUMNS)}) VALUES ({placeholders})"
        total = 0
        batch: list[tuple] = []
        try:
            for loc in locations:
                data = loc.model_dump()
                batch.append(tuple(data[c] for c in DETAIL_COLUMNS))
                if len(batch) >= batch_size:
                    conn.executemany(sql, batch)
                    total += len(batch)
                    batch = []
            if batch:
                conn.executemany(sql, batch)
                total += len(batch)
            conn.commit()
        except sqlite3.Error as exc:
            raise StoreQueryError(f"import into {self.db_path} failed: {exc}") from exc
        finally:
            conn.close()
        logger.info("Imported %d locations into %s", total, self.db_path)
        return total
