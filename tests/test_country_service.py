from datetime import datetime, timedelta, timezone

import httpx
import pytest
import respx
from doubles import StubFacts, StubNews, StubWeather, make_facts

from geopulse.cache import CountryCache
from geopulse.config import Settings
from geopulse.errors import CacheError, ErrorKind
from geopulse.services import Aggregator, CountryService
from geopulse.services.facts import FactsFetcher
from geopulse.services.news import NewsFetcher
from geopulse.services.weather import WeatherFetcher

COUNTRIES_URL = "https://restcountries.com/v3.1/name"
EUROPE_FEED = "https://feeds.bbci.co.uk/news/world/europe/rss.xml"

NORWAY = {
    "name": {"common": "Norway", "official": "Kingdom of Norway"},
    "capital": ["Oslo"],
    "region": "Europe",
    "subregion": "Northern Europe",
    "population": 5379475,
    "area": 323802.0,
    "currencies": {"NOK": {"name": "Norwegian krone", "symbol": "kr"}},
    "languages": {"nno": "Norwegian Nynorsk", "nob": "Norwegian Bokmål"},
    "flag": "\U0001f1f3\U0001f1f4",
}

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <item>
      <title>Oslo hosts summit</title>
      <link>https://www.bbc.co.uk/news/articles/oslo</link>
      <pubDate>Mon, 20 May 2024 15:20:00 +0000</pubDate>
      <description>&lt;p&gt;Leaders meet in Oslo.&lt;/p&gt;</description>
    </item>
  </channel>
</rss>
"""


def _service(client: httpx.AsyncClient, cache: CountryCache) -> CountryService:
    settings = Settings(WEATHER_API_KEY=None)
    aggregator = Aggregator(
        facts=FactsFetcher(settings=settings, client=client),
        weather=WeatherFetcher(settings=settings, client=client),
        news=NewsFetcher(settings=settings, client=client),
        settings=settings,
    )
    return CountryService(cache=cache, aggregator=aggregator, settings=settings)


@pytest.mark.asyncio
async def test_norway_end_to_end_and_cache_hit() -> None:
    cache = CountryCache()
    async with httpx.AsyncClient() as client:
        service = _service(client, cache)
        with respx.mock(assert_all_called=True) as mock:
            facts_route = mock.get(f"{COUNTRIES_URL}/Norway").respond(200, json=[NORWAY])
            news_route = mock.get(EUROPE_FEED).respond(200, text=RSS)

            first = await service.fetch("Norway")
            second = await service.fetch("norway")

    assert first.region == "Europe"
    assert first.gdp_per_capita == 80500.0
    assert first.geopolitical_risk_index <= 1.0
    assert first.weather is not None
    assert first.news[0].title == "Oslo hosts summit"
    assert first.news[0].description == "Leaders meet in Oslo."

    assert facts_route.call_count == 1
    assert news_route.call_count == 2
    assert second.country_name == "Norway"
    assert second.news

    cached = await cache.peek("Norway")
    assert cached.weather is None
    assert cached.news == []


@pytest.mark.asyncio
async def test_atlantis_is_not_found_and_not_cached() -> None:
    cache = CountryCache()
    async with httpx.AsyncClient() as client:
        service = _service(client, cache)
        with respx.mock(assert_all_called=False) as mock:
            mock.get(f"{COUNTRIES_URL}/Atlantis").respond(200, json=[])
            mock.get("https://feeds.bbci.co.uk/news/world/rss.xml").respond(200, text=RSS)
            result = await service.resolve("Atlantis")

    assert not result.ok
    assert result.status_code == 404
    assert result.error.kind is ErrorKind.NOT_FOUND
    assert "Atlantis" in result.error.message
    assert await cache.peek("Atlantis") is None

    payload = result.to_payload()
    assert payload.country_name == "Atlantis"
    assert payload.capital == "N/A"
    assert payload.population == 0
    assert payload.error == result.error.message


@pytest.mark.asyncio
async def test_stale_entry_is_refetched(settings, make_aggregator) -> None:
    now = datetime(2024, 5, 20, 12, 0, tzinfo=timezone.utc)
    cache = CountryCache(clock=lambda: now)
    await cache.store(
        make_facts().model_copy(update={"cached_at": now - timedelta(minutes=11)})
    )
    facts = StubFacts()
    service = CountryService(
        cache=cache, aggregator=make_aggregator(facts=facts), settings=settings
    )

    record = await service.fetch("Norway")

    assert facts.calls == ["Norway"]
    assert (await cache.peek("Norway")).cached_at == record.cached_at


@pytest.mark.asyncio
async def test_fresh_entry_skips_facts_fetch(settings, make_aggregator) -> None:
    cache = CountryCache()
    await cache.store(make_facts())
    facts = StubFacts()
    service = CountryService(
        cache=cache, aggregator=make_aggregator(facts=facts), settings=settings
    )

    record = await service.fetch("NORWAY")

    assert facts.calls == []
    assert record.weather is not None
    assert record.news


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raw, message",
    [
        ("", "Country name cannot be empty"),
        ("   ", "Country name cannot be empty"),
        ("N", "Country name must be at least 2 characters long"),
        ("Norway1", "Invalid country name format"),
        ("Nor;way", "Invalid country name format"),
    ],
)
async def test_invalid_input_is_rejected(settings, make_aggregator, raw, message) -> None:
    facts = StubFacts()
    service = CountryService(
        cache=CountryCache(), aggregator=make_aggregator(facts=facts), settings=settings
    )

    result = await service.resolve(raw)

    assert result.status_code == 400
    assert result.error.kind is ErrorKind.INVALID_INPUT
    assert result.error.message == message
    assert facts.calls == []


@pytest.mark.asyncio
async def test_resolve_trims_and_succeeds(settings, make_aggregator) -> None:
    service = CountryService(
        cache=CountryCache(), aggregator=make_aggregator(), settings=settings
    )

    result = await service.resolve("  Norway  ")

    assert result.ok
    assert result.status_code == 200
    assert result.to_payload().country_name == "Norway"


def test_search_matches_substrings_case_insensitively() -> None:
    assert CountryService.search("land") == ["Netherlands", "Switzerland"]
    assert CountryService.search("UNITED") == ["United States", "United Kingdom"]
    assert CountryService.search("zz") == []
    assert len(CountryService.search("a")) == 10


class _BrokenBackend:
    name = "broken"

    def get(self, key):
        raise CacheError("database is locked")

    def put(self, key, record):
        raise OSError("disk full")


@pytest.mark.asyncio
async def test_broken_cache_still_serves_fresh_data(settings, make_aggregator) -> None:
    facts, weather, news = StubFacts(), StubWeather(), StubNews()
    service = CountryService(
        cache=CountryCache(_BrokenBackend()),
        aggregator=make_aggregator(facts, weather, news),
        settings=settings,
    )

    record = await service.fetch("Norway")
    result = await service.resolve("norway")

    assert record.capital == "Oslo"
    assert record.gdp_per_capita == 80500.0
    assert record.weather.temperature is not None
    assert record.news[0].title == "Norway headline"
    assert result.ok
    assert result.to_payload().news
    assert facts.calls == ["Norway", "norway"]


@pytest.mark.asyncio
async def test_alias_is_served_from_cache() -> None:
    united_states = {
        **NORWAY,
        "name": {"common": "United States", "official": "United States of America"},
        "capital": ["Washington, D.C."],
        "region": "Americas",
        "flag": "\U0001f1fa\U0001f1f8",
    }
    cache = CountryCache()
    async with httpx.AsyncClient() as client:
        service = _service(client, cache)
        with respx.mock(assert_all_called=True) as mock:
            facts_route = mock.get(f"{COUNTRIES_URL}/USA").respond(
                200, json=[united_states]
            )
            mock.route(host="feeds.bbci.co.uk").respond(200, text=RSS)

            first = await service.fetch("USA")
            second = await service.fetch("usa")
            third = await service.fetch("United States")

    assert first.country_name == "United States"
    assert second.country_name == "United States"
    assert third.capital == "Washington, D.C."
    assert facts_route.call_count == 1
