from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import MappingProxyType

import httpx
from bs4 import BeautifulSoup
from dateutil import parser as date_parser

from ..config import Settings, get_settings
from ..http_client import get_http_client
from ..models.news import MAX_DESCRIPTION_LENGTH, NewsArticle

logger = logging.getLogger(__name__)

ITEMS_PER_FEED = 10
MAX_COLLECTED = 10
MAX_RETURNED = 8
PLACEHOLDER_COUNT = 6


@dataclass(frozen=True, slots=True)
class FeedSource:
    name: str
    url: str


BBC_EUROPE = FeedSource("BBC News", "https://feeds.bbci.co.uk/news/world/europe/rss.xml")
BBC_ASIA = FeedSource("BBC News", "https://feeds.bbci.co.uk/news/world/asia/rss.xml")
BBC_LATIN_AMERICA = FeedSource(
    "BBC News", "https://feeds.bbci.co.uk/news/world/latin_america/rss.xml"
)
BBC_US_CANADA = FeedSource(
    "BBC News", "https://feeds.bbci.co.uk/news/world/us_and_canada/rss.xml"
)
BBC_UK = FeedSource("BBC News", "https://feeds.bbci.co.uk/news/uk/rss.xml")
WORLD_FEED = FeedSource("BBC News", "https://feeds.bbci.co.uk/news/world/rss.xml")

COUNTRY_FEEDS: Mapping[str, tuple[FeedSource, ...]] = MappingProxyType(
    {
        "germany": (BBC_EUROPE,),
        "norway": (BBC_EUROPE,),
        "france": (BBC_EUROPE,),
        "italy": (BBC_EUROPE,),
        "spain": (BBC_EUROPE,),
        "netherlands": (BBC_EUROPE,),
        "sweden": (BBC_EUROPE,),
        "denmark": (BBC_EUROPE,),
        "switzerland": (BBC_EUROPE,),
        "japan": (BBC_ASIA,),
        "china": (BBC_ASIA,),
        "india": (BBC_ASIA,),
        "south korea": (BBC_ASIA,),
        "australia": (BBC_ASIA,),
        "brazil": (BBC_LATIN_AMERICA,),
        "argentina": (BBC_LATIN_AMERICA,),
        "mexico": (BBC_LATIN_AMERICA,),
        "united states": (BBC_US_CANADA,),
        "canada": (BBC_US_CANADA,),
        "united kingdom": (BBC_UK, BBC_EUROPE),
    }
)

PLACEHOLDER_TITLES: tuple[str, ...] = (
    "{country} announces new economic reforms",
    "Breaking: Political developments in {country}",
    "{country} strengthens international partnerships",
    "Economic growth reported in {country}",
    "Infrastructure investments boost {country} development",
    "Cultural festival celebrates {country} heritage",
    "{country} leads regional cooperation initiative",
    "Technology sector expansion in {country}",
)
PLACEHOLDER_SOURCES: tuple[str, ...] = (
    "Reuters",
    "Associated Press",
    "World News",
    "Global Times",
)


@dataclass(slots=True)
class NewsFetcher:
    settings: Settings | None = None
    client: httpx.AsyncClient | None = None
    feeds: Mapping[str, tuple[FeedSource, ...]] = field(
        default_factory=lambda: COUNTRY_FEEDS
    )
    default_feeds: tuple[FeedSource, ...] = (WORLD_FEED,)

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()

    def feeds_for(self, country_name: str) -> tuple[FeedSource, ...]:
        return self.feeds.get(country_name.strip().lower(), self.default_feeds)

    async def fetch(self, country_name: str) -> list[NewsArticle]:
        """Latest articles for *country_name*, most recent first.

        Feed failures are logged and skipped; when nothing could be read at
        all, placeholder articles are returned.
        """
        client = self.client or await get_http_client()
        collected: list[NewsArticle] = []
        for feed in self.feeds_for(country_name):
            try:
                collected.extend(await self._fetch_feed(client, feed))
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("News feed %s failed: %s", feed.url, exc)
                continue
            if len(collected) >= MAX_COLLECTED:
                break

        if not collected:
            logger.info("No live news for %s, using placeholders", country_name)
            return self.placeholder_articles(country_name)
        return _most_recent_first(collected)[:MAX_RETURNED]

    async def _fetch_feed(
        self, client: httpx.AsyncClient, feed: FeedSource
    ) -> list[NewsArticle]:
        response = await client.get(
            feed.url,
            headers={"Accept": "application/rss+xml, application/xml"},
        )
        response.raise_for_status()
        soup = BeautifulSoup(response.content, "xml")
        items: list[NewsArticle] = []
        seen: set[str] = set()
        for entry in soup.find_all("item"):
            title_tag = entry.find("title")
            title = title_tag.get_text(strip=True) if title_tag else ""
            if not title:
                continue
            link_tag = entry.find("link")
            link = link_tag.get_text(strip=True) if link_tag else ""
            if link and link in seen:
                continue
            date_tag = entry.find("pubDate") or entry.find("dc:date")
            description_tag = entry.find("description")
            category_tag = entry.find("category")
            items.append(
                NewsArticle(
                    title=title,
                    url=link,
                    source=feed.name,
                    description=clean_description(
                        description_tag.get_text() if description_tag else None
                    ),
                    published_at=_parse_datetime(
                        date_tag.get_text(strip=True) if date_tag else None
                    ),
                    category=category_tag.get_text(strip=True) if category_tag else None,
                )
            )
            seen.add(link)
            if len(items) >= ITEMS_PER_FEED:
                break
        return items

    @staticmethod
    def placeholder_articles(
        country_name: str, now: datetime | None = None
    ) -> list[NewsArticle]:
        now = now or datetime.now(timezone.utc)
        return [
            NewsArticle(
                title=template.format(country=country_name),
                url=f"https://example.com/news/{index + 1}",
                source=PLACEHOLDER_SOURCES[index % len(PLACEHOLDER_SOURCES)],
                description=(
                    f"Latest developments and analysis regarding {country_name} "
                    "covering political, economic, and social aspects."
                ),
                published_at=now - timedelta(hours=index + 1),
                category="World News",
            )
            for index, template in enumerate(PLACEHOLDER_TITLES[:PLACEHOLDER_COUNT])
        ]


def clean_description(raw: str | None) -> str | None:
    """Strip markup and cap the text at 200 characters."""
    if not raw:
        return None
    text = raw.strip()
    if "<" in text:
        text = BeautifulSoup(text, "lxml").get_text(" ", strip=True)
    if not text:
        return None
    if len(text) > MAX_DESCRIPTION_LENGTH:
        return text[: MAX_DESCRIPTION_LENGTH - 3] + "..."
    return text


def _most_recent_first(articles: list[NewsArticle]) -> list[NewsArticle]:
    # undated articles keep their feed order after the dated ones
    dated = [article for article in articles if article.published_at is not None]
    undated = [article for article in articles if article.published_at is None]
    dated.sort(key=lambda article: article.published_at, reverse=True)
    return dated + undated


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = date_parser.parse(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
