from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ErrorKind
from .news import NewsArticle
from .weather import WeatherSnapshot

NOT_AVAILABLE = "N/A"
GENERIC_FLAG = "\U0001f3f3\ufe0f"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CountryRecord(BaseModel):
    """Aggregated view of a country.

    Instances are immutable; the aggregator and the cache produce new
    copies instead of mutating cached ones. Only the facts portion is ever
    persisted, ``weather`` and ``news`` are attached per request.
    """

    model_config = ConfigDict(frozen=True)

    country_name: str = Field(description="Canonical country name, cache key")
    capital: str = Field(default=NOT_AVAILABLE)
    population: int = Field(default=0, ge=0)
    region: str = Field(default=NOT_AVAILABLE)
    subregion: str = Field(default=NOT_AVAILABLE)
    area: float = Field(default=0.0, ge=0, description="Square kilometres")
    currency: str = Field(default=NOT_AVAILABLE)
    language: str = Field(default=NOT_AVAILABLE)
    flag_emoji: str = Field(default=GENERIC_FLAG)
    gdp_per_capita: float = Field(
        default=0.0, ge=0, description="Derived estimate, never sourced upstream"
    )
    geopolitical_risk_index: float = Field(
        default=0.0, ge=0, le=10.0, description="Derived score, 0.1 (low) to 10"
    )
    weather: WeatherSnapshot | None = Field(default=None)
    news: list[NewsArticle] = Field(default_factory=list)
    cached_at: datetime = Field(default_factory=_utcnow)
    error: str | None = Field(
        default=None, description="Explanation when this is an error placeholder"
    )

    def facts_only(self) -> CountryRecord:
        return self.model_copy(update={"weather": None, "news": []})

    def with_live(
        self, weather: WeatherSnapshot | None, news: list[NewsArticle]
    ) -> CountryRecord:
        return self.model_copy(update={"weather": weather, "news": list(news)})

    def is_fresh(self, now: datetime, window: timedelta) -> bool:
        return now - self.cached_at < window

    @property
    def has_capital(self) -> bool:
        return bool(self.capital) and self.capital != NOT_AVAILABLE

    @classmethod
    def placeholder(cls, country_name: str, message: str) -> CountryRecord:
        """Record-shaped error payload the UI can still render."""
        return cls(
            country_name=country_name,
            capital=NOT_AVAILABLE,
            population=0,
            region=NOT_AVAILABLE,
            subregion="Please try a different search",
            area=0.0,
            currency=NOT_AVAILABLE,
            language=NOT_AVAILABLE,
            flag_emoji=GENERIC_FLAG,
            gdp_per_capita=0.0,
            geopolitical_risk_index=0.0,
            weather=None,
            news=[],
            error=message,
        )


class ErrorDetail(BaseModel):
    kind: ErrorKind
    message: str
    status_code: int


class LookupResult(BaseModel):
    """Either a populated record or a typed error, never both."""

    country_name: str
    record: CountryRecord | None = None
    error: ErrorDetail | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status_code(self) -> int:
        return 200 if self.error is None else self.error.status_code

    def to_payload(self) -> CountryRecord:
        if self.record is not None:
            return self.record
        message = self.error.message if self.error else "Unknown error"
        return CountryRecord.placeholder(self.country_name, message)
