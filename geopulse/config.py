from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    http_timeout: float = Field(10.0, gt=0, alias="HTTP_TIMEOUT")
    http_max_connections: int = Field(20, ge=1, alias="HTTP_MAX_CONNECTIONS")
    http_max_keepalive: int = Field(10, ge=1, alias="HTTP_MAX_KEEPALIVE")
    http_user_agent: str = Field(
        "Mozilla/5.0 (compatible; GeoPulse/1.0)",
        alias="HTTP_USER_AGENT",
    )

    countries_base_url: HttpUrl = Field(
        "https://restcountries.com/v3.1/name", alias="COUNTRIES_BASE_URL"
    )
    weather_base_url: HttpUrl = Field(
        "https://api.openweathermap.org/data/2.5/weather", alias="WEATHER_BASE_URL"
    )
    weather_api_key: str | None = Field(default=None, alias="WEATHER_API_KEY")

    cache_backend: Literal["memory", "sqlite"] = Field(
        "memory", alias="CACHE_BACKEND"
    )
    cache_db_path: str = Field("data/country_cache.db", alias="CACHE_DB_PATH")
    cache_ttl_seconds: int = Field(600, gt=0, alias="CACHE_TTL_SECONDS")
    fetch_join_timeout: float = Field(30.0, gt=0, alias="FETCH_JOIN_TIMEOUT")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    @property
    def live_weather_enabled(self) -> bool:
        return bool(self.weather_api_key) and self.weather_api_key != "demo_key"


@lru_cache
def get_settings() -> Settings:
    return Settings()
