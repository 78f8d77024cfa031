"""Concurrent fan-out over the facts, weather and news fetchers.

A miss runs the three fetchers concurrently and joins them. If the join
fails (a branch raised or the join timed out) the whole fetch is re-run
once, sequentially, in the fixed order facts, weather, news. A cache hit
only refreshes the live portion and never fails because of it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from ..config import Settings, get_settings
from ..errors import CountryNotFoundError
from ..models.country import CountryRecord
from ..models.news import NewsArticle
from ..models.weather import WeatherSnapshot
from .facts import FactsFetcher
from .news import NewsFetcher
from .weather import WeatherFetcher

logger = logging.getLogger(__name__)


class AggregatorState(str, Enum):
    IDLE = "idle"
    FETCHING_CONCURRENT = "fetching_concurrent"
    JOINED = "joined"
    FALLBACK_SEQUENTIAL = "fallback_sequential"
    DONE = "done"


@dataclass(slots=True)
class Aggregator:
    facts: FactsFetcher
    weather: WeatherFetcher
    news: NewsFetcher
    settings: Settings | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()

    @classmethod
    def from_settings(cls, settings: Settings) -> Aggregator:
        return cls(
            facts=FactsFetcher(settings=settings),
            weather=WeatherFetcher(settings=settings),
            news=NewsFetcher(settings=settings),
            settings=settings,
        )

    async def fetch_all(
        self,
        country_name: str,
        trace: list[AggregatorState] | None = None,
    ) -> CountryRecord:
        """Fresh record with facts, weather and news for *country_name*.

        Args:
            country_name: Validated country name.
            trace: Optional list that receives the states this call passes
                through. Pass a fresh list per call.

        Raises:
            CountryNotFoundError: Never retried.
            TransientFetchError: Raised only after the sequential retry
                failed as well.
        """
        if trace is None:
            trace = []
        trace.append(AggregatorState.FETCHING_CONCURRENT)
        try:
            results = await asyncio.wait_for(
                asyncio.gather(
                    self.facts.fetch(country_name),
                    self.weather.fetch(country_name),
                    self.news.fetch(country_name),
                    return_exceptions=True,
                ),
                timeout=self.settings.fetch_join_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Concurrent fetch for %s timed out", country_name)
            results = None

        failure = _first_failure(results)
        if results is not None and failure is None:
            trace.append(AggregatorState.JOINED)
            facts, weather, news = results
        else:
            if isinstance(failure, CountryNotFoundError):
                trace.append(AggregatorState.DONE)
                raise failure
            if failure is not None:
                logger.warning(
                    "Concurrent fetch for %s failed (%s), retrying sequentially",
                    country_name,
                    failure,
                )
            trace.append(AggregatorState.FALLBACK_SEQUENTIAL)
            facts, weather, news = await self._fetch_sequential(country_name)

        weather = await self._repair_weather(facts, weather)
        trace.append(AggregatorState.DONE)
        return facts.with_live(weather, news)

    async def _fetch_sequential(
        self, country_name: str
    ) -> tuple[CountryRecord, WeatherSnapshot, list[NewsArticle]]:
        facts = await self.facts.fetch(country_name)
        try:
            weather = await self.weather.fetch(country_name)
        except Exception as exc:
            logger.warning("Weather fetch for %s failed: %s", country_name, exc)
            weather = self.weather.synthetic(country_name)
        try:
            news = await self.news.fetch(country_name)
        except Exception as exc:
            logger.warning("News fetch for %s failed: %s", country_name, exc)
            news = self.news.placeholder_articles(country_name)
        return facts, weather, news

    async def _repair_weather(
        self, facts: CountryRecord, weather: WeatherSnapshot | None
    ) -> WeatherSnapshot | None:
        # capital-as-city retry when the country name gave no reading
        if weather is not None and weather.temperature is not None:
            return weather
        if not facts.has_capital:
            return weather
        logger.info(
            "No weather for %s, retrying with capital %s",
            facts.country_name,
            facts.capital,
        )
        try:
            return await self.weather.fetch(facts.capital)
        except Exception as exc:
            logger.warning("Weather retry for %s failed: %s", facts.capital, exc)
            return weather

    async def refresh_live(self, record: CountryRecord) -> CountryRecord:
        """Attach live weather and news to a cached facts record.

        Never raises: a failed branch leaves an empty default in place.
        """
        name = record.country_name
        weather: WeatherSnapshot | None = WeatherSnapshot(city=name)
        news: list[NewsArticle] = []
        try:
            weather_result, news_result = await asyncio.wait_for(
                asyncio.gather(
                    self.weather.fetch(name),
                    self.news.fetch(name),
                    return_exceptions=True,
                ),
                timeout=self.settings.fetch_join_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Live refresh for %s timed out", name)
        else:
            if isinstance(weather_result, WeatherSnapshot):
                weather = weather_result
            else:
                logger.warning("Live weather for %s failed: %s", name, weather_result)
            if isinstance(news_result, list):
                news = news_result
            else:
                logger.warning("Live news for %s failed: %s", name, news_result)

        weather = await self._repair_weather(record, weather)
        return record.with_live(weather, news)


def _first_failure(results: list[object] | None) -> BaseException | None:
    if results is None:
        return None
    for result in results:
        if isinstance(result, BaseException):
            return result
    return None
