"""SQLite schema and initialization."""

from __future__ import annotations

import sqlite3
from pathlib import Path

DEFAULT_DB_NAME = "geoname.db"

DETAIL_COLUMNS = (
    "geonameid", "alternatenames", "asciiname", "country", "elevation", "fclass",
    "latitude", "longitude", "moddate", "name", "population", "timezone",
)

TABLES_SQL = """\
CREATE TABLE IF NOT EXISTS cities15000 (
    geonameid INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    asciiname TEXT NOT NULL,
    alternatenames TEXT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    fclass TEXT,
    country TEXT NOT NULL,
    population INTEGER NOT NULL DEFAULT 0,
    elevation INTEGER,
    timezone TEXT,
    moddate TEXT
);

CREATE INDEX IF NOT EXISTS idx_cities15000_population ON cities15000(population);
"""

CACHE_SQL = """\
CREATE TABLE IF NOT EXISTS kv_cache (
    key TEXT PRIMARY KEY,
    value BLOB NOT NULL,
    expires_at REAL
);
"""


def init_db(db_path: Path | str = DEFAULT_DB_NAME) -> sqlite3.Connection:
    """Create the locations table if needed and return a connection."""
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.executescript(TABLES_SQL)
    conn.commit()
    return conn


def init_cache_db(db_path: Path | str) -> sqlite3.Connection:
    """Create the key/value cache table if needed and return a connection."""
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.executescript(CACHE_SQL)
    conn.commit()
    return conn
