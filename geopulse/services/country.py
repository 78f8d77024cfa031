from __future__ import annotations

import logging
from dataclasses import dataclass

from ..cache import CountryCache
from ..config import Settings, get_settings
from ..errors import CountryNotFoundError, GeoPulseError
from ..models.country import CountryRecord, ErrorDetail, LookupResult
from ..validation import validate_country_name
from .aggregator import Aggregator

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 10

SUGGESTED_COUNTRIES: tuple[str, ...] = (
    "Germany",
    "Japan",
    "Brazil",
    "Norway",
    "United States",
    "United Kingdom",
    "France",
    "China",
    "India",
    "Australia",
    "Canada",
    "Mexico",
    "Argentina",
    "South Korea",
    "Italy",
    "Spain",
    "Netherlands",
    "Sweden",
    "Denmark",
    "Switzerland",
)


@dataclass(slots=True)
class CountryService:
    cache: CountryCache
    aggregator: Aggregator | None = None
    settings: Settings | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()
        if self.aggregator is None:
            self.aggregator = Aggregator.from_settings(self.settings)

    async def fetch(self, country_name: str) -> CountryRecord:
        """Full record for an already validated *country_name*.

        Fresh cached facts are reused and only weather and news are fetched.
        Otherwise everything is fetched and the facts are cached.
        """
        cached = await self.cache.lookup(country_name)
        if cached is not None:
            logger.debug("Cache hit for %s", country_name)
            return await self.aggregator.refresh_live(cached)

        record = await self.aggregator.fetch_all(country_name)
        await self.cache.store(record, requested_name=country_name)
        return record

    async def resolve(self, raw_name: str | None) -> LookupResult:
        """Validate, fetch and wrap the outcome as a tagged result."""
        requested = (raw_name or "").strip()
        try:
            country_name = validate_country_name(raw_name)
            record = await self.fetch(country_name)
        except CountryNotFoundError as exc:
            logger.info("Country not found: %s", exc.country_name)
            return _failure(requested, exc)
        except GeoPulseError as exc:
            logger.warning("Lookup for %r failed: %s", requested, exc.message)
            return _failure(requested, exc)
        return LookupResult(country_name=record.country_name, record=record)

    @staticmethod
    def search(query: str, limit: int = MAX_SUGGESTIONS) -> list[str]:
        needle = query.strip().lower()
        matches = [name for name in SUGGESTED_COUNTRIES if needle in name.lower()]
        return matches[:limit]


def _failure(country_name: str, exc: GeoPulseError) -> LookupResult:
    return LookupResult(
        country_name=country_name,
        error=ErrorDetail(
            kind=exc.kind, message=exc.message, status_code=exc.status_code
        ),
    )
