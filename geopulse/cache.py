"""Facts cache with a fixed freshness window.

Only the facts portion of a ``CountryRecord`` is stored; weather and news
are always fetched live. Entries are keyed by the lower-cased, stripped
name, so lookups are case-insensitive and at most one entry exists per key,
replaced on every store.

Entries are never deleted. A stale entry stays in the backend and is
simply not returned by ``lookup()``, which sends the caller down the
re-fetch path. Backend failures never propagate: a failed read is a miss
and a failed write is skipped.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from .config import Settings
from .errors import CacheError
from .models.country import CountryRecord

logger = logging.getLogger(__name__)

FRESHNESS_WINDOW = timedelta(minutes=10)

_COLUMNS: tuple[str, ...] = (
    "country_name",
    "capital",
    "population",
    "region",
    "subregion",
    "area",
    "currency",
    "language",
    "flag_emoji",
    "gdp_per_capita",
    "geopolitical_risk_index",
    "cached_at",
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS country_cache (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    lookup_key TEXT NOT NULL UNIQUE,
    country_name TEXT NOT NULL,
    capital TEXT,
    population INTEGER,
    region TEXT,
    subregion TEXT,
    area REAL,
    currency TEXT,
    language TEXT,
    flag_emoji TEXT,
    gdp_per_capita REAL,
    geopolitical_risk_index REAL,
    cached_at TEXT NOT NULL
);
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def cache_key(country_name: str) -> str:
    return country_name.strip().lower()


class CacheBackend(Protocol):
    name: str

    def get(self, key: str) -> CountryRecord | None: ...

    def put(self, key: str, record: CountryRecord) -> None: ...


class MemoryCacheBackend:
    """Process-local dict store."""

    name = "memory"

    def __init__(self) -> None:
        self._entries: dict[str, CountryRecord] = {}

    def get(self, key: str) -> CountryRecord | None:
        return self._entries.get(key)

    def put(self, key: str, record: CountryRecord) -> None:
        self._entries[key] = record

    def __len__(self) -> int:
        return len(self._entries)


class SqliteCacheBackend:
    """``country_cache`` table, one scalar column per facts field.

    ``country_name`` keeps the canonical spelling; rows are addressed by
    ``lookup_key``.
    """

    name = "sqlite"

    def __init__(self, db_path: str | Path = "data/country_cache.db") -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connection() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise CacheError(f"Cannot open cache database: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise CacheError(f"Cache database error: {exc}") from exc
        finally:
            conn.close()

    def get(self, key: str) -> CountryRecord | None:
        with self._connection() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM country_cache "
                "WHERE lookup_key = ? LIMIT 1",
                (key,),
            ).fetchone()
        if row is None:
            return None
        data = dict(row)
        data["cached_at"] = datetime.fromisoformat(data["cached_at"])
        return CountryRecord(**{k: v for k, v in data.items() if v is not None})

    def put(self, key: str, record: CountryRecord) -> None:
        values = record.model_dump(include=set(_COLUMNS))
        values["cached_at"] = record.cached_at.isoformat()
        columns = ("lookup_key", *_COLUMNS)
        placeholders = ", ".join("?" for _ in columns)
        with self._connection() as conn:
            conn.execute("DELETE FROM country_cache WHERE lookup_key = ?", (key,))
            conn.execute(
                f"INSERT INTO country_cache ({', '.join(columns)}) "
                f"VALUES ({placeholders})",
                (key, *(values[column] for column in _COLUMNS)),
            )

    def ping(self) -> bool:
        with self._connection() as conn:
            conn.execute("SELECT 1")
        return True


class CountryCache:
    """Facts cache in front of a blocking backend.

    Backend calls run in a worker thread so a slow disk never stalls the
    event loop.
    """

    def __init__(
        self,
        backend: CacheBackend | None = None,
        window: timedelta = FRESHNESS_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.backend = backend if backend is not None else MemoryCacheBackend()
        self.window = window
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: Settings) -> CountryCache:
        backend: CacheBackend
        if settings.cache_backend == "sqlite":
            backend = SqliteCacheBackend(settings.cache_db_path)
        else:
            backend = MemoryCacheBackend()
        return cls(backend, window=timedelta(seconds=settings.cache_ttl_seconds))

    async def peek(self, country_name: str) -> CountryRecord | None:
        """Stored entry regardless of age, ``None`` on miss or failure."""
        try:
            return await asyncio.to_thread(self.backend.get, cache_key(country_name))
        except Exception as exc:
            logger.warning("Cache read failed for %s: %s", country_name, exc)
            return None

    async def lookup(self, country_name: str) -> CountryRecord | None:
        """Fresh entry for *country_name*, otherwise ``None``."""
        record = await self.peek(country_name)
        if record is None:
            return None
        if not record.is_fresh(self._clock(), self.window):
            logger.debug("Cache entry for %s is stale", country_name)
            return None
        return record

    async def store(
        self, record: CountryRecord, requested_name: str | None = None
    ) -> None:
        """Persist the facts of *record*.

        The entry is keyed by the canonical name and, when it differs, also
        by *requested_name* so that aliases such as "USA" hit on the next
        request.
        """
        facts = record.facts_only()
        keys = [cache_key(record.country_name)]
        if requested_name and cache_key(requested_name) not in keys:
            keys.append(cache_key(requested_name))
        for key in keys:
            try:
                await asyncio.to_thread(self.backend.put, key, facts)
            except Exception as exc:
                logger.warning("Cache write failed for %s: %s", key, exc)
