from datetime import datetime, timedelta, timezone

import pytest

from geopulse.cache import CountryCache, MemoryCacheBackend, SqliteCacheBackend
from geopulse.config import Settings
from geopulse.errors import CacheError
from geopulse.models import CountryRecord, NewsArticle, WeatherSnapshot

NOW = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)


class _Clock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class _BrokenBackend:
    name = "broken"

    def get(self, key):
        raise CacheError("database is locked")

    def put(self, key, record):
        raise RuntimeError("disk full")


def _france(cached_at: datetime = NOW) -> CountryRecord:
    return CountryRecord(
        country_name="France",
        capital="Paris",
        population=67391582,
        region="Europe",
        subregion="Western Europe",
        area=551695.0,
        currency="Euro",
        language="French",
        flag_emoji="\U0001f1eb\U0001f1f7",
        gdp_per_capita=42000.0,
        geopolitical_risk_index=1.6,
        weather=WeatherSnapshot(city="France", temperature=18.0),
        news=[NewsArticle(title="Headline", url="https://example.com", source="BBC")],
        cached_at=cached_at,
    )


@pytest.mark.asyncio
async def test_round_trip_strips_live_data() -> None:
    clock = _Clock(NOW + timedelta(minutes=5))
    cache = CountryCache(clock=clock)
    record = _france()

    await cache.store(record)
    found = await cache.lookup("France")

    assert found is not None
    assert found.model_dump() == record.facts_only().model_dump()
    assert found.weather is None
    assert found.news == []
    # the caller's record is left untouched
    assert record.weather is not None


@pytest.mark.asyncio
async def test_lookup_is_case_insensitive() -> None:
    cache = CountryCache(clock=_Clock(NOW))
    await cache.store(_france())
    assert await cache.lookup("FRANCE") is not None
    assert await cache.lookup("  france ") is not None


@pytest.mark.asyncio
async def test_stale_entry_is_not_a_hit_but_stays_stored() -> None:
    clock = _Clock(NOW)
    cache = CountryCache(clock=clock)
    await cache.store(_france())

    clock.now = NOW + timedelta(minutes=9, seconds=59)
    assert await cache.lookup("France") is not None

    clock.now = NOW + timedelta(minutes=10)
    assert await cache.lookup("France") is None
    assert await cache.peek("France") is not None


@pytest.mark.asyncio
async def test_store_replaces_existing_entry() -> None:
    backend = MemoryCacheBackend()
    cache = CountryCache(backend, clock=_Clock(NOW))
    await cache.store(_france(cached_at=NOW - timedelta(hours=1)))
    await cache.store(_france(cached_at=NOW))

    assert len(backend) == 1
    assert (await cache.lookup("france")).cached_at == NOW


@pytest.mark.asyncio
async def test_requested_alias_is_stored_next_to_canonical_name() -> None:
    backend = MemoryCacheBackend()
    cache = CountryCache(backend, clock=_Clock(NOW))

    await cache.store(_france(), requested_name="République française")
    await cache.store(_france(), requested_name="france")

    assert len(backend) == 2
    found = await cache.lookup("RÉPUBLIQUE FRANÇAISE")
    assert found.country_name == "France"


@pytest.mark.asyncio
async def test_backend_failures_are_swallowed() -> None:
    cache = CountryCache(_BrokenBackend(), clock=_Clock(NOW))
    await cache.store(_france(), requested_name="Frankreich")
    assert await cache.lookup("France") is None
    assert await cache.peek("France") is None


@pytest.mark.asyncio
async def test_sqlite_backend_round_trip(tmp_path) -> None:
    backend = SqliteCacheBackend(tmp_path / "cache.db")
    cache = CountryCache(backend, clock=_Clock(NOW + timedelta(minutes=1)))
    record = _france()

    await cache.store(record)
    found = await cache.lookup("fRaNcE")

    assert found.model_dump() == record.facts_only().model_dump()
    assert backend.ping()


@pytest.mark.asyncio
async def test_sqlite_backend_keeps_one_row_per_country(tmp_path) -> None:
    backend = SqliteCacheBackend(tmp_path / "cache.db")
    cache = CountryCache(backend, clock=_Clock(NOW))
    await cache.store(_france(cached_at=NOW - timedelta(hours=2)))
    await cache.store(
        _france(cached_at=NOW).model_copy(update={"country_name": "FRANCE"})
    )

    found = await cache.lookup("France")
    assert found.country_name == "FRANCE"
    assert found.cached_at == NOW


@pytest.mark.asyncio
async def test_sqlite_backend_serves_alias(tmp_path) -> None:
    backend = SqliteCacheBackend(tmp_path / "cache.db")
    cache = CountryCache(backend, clock=_Clock(NOW))

    await cache.store(_france(), requested_name="Frankreich")

    assert (await cache.lookup("frankreich")).country_name == "France"
    assert (await cache.lookup("France")).country_name == "France"


def test_from_settings_selects_backend(tmp_path) -> None:
    memory = CountryCache.from_settings(Settings())
    assert memory.backend.name == "memory"
    assert memory.window == timedelta(minutes=10)

    sqlite = CountryCache.from_settings(
        Settings(
            CACHE_BACKEND="sqlite",
            CACHE_DB_PATH=str(tmp_path / "nested" / "cache.db"),
            CACHE_TTL_SECONDS=60,
        )
    )
    assert sqlite.backend.name == "sqlite"
    assert sqlite.window == timedelta(seconds=60)
