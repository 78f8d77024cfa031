from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import Settings, get_settings
from ..hashing import stable_hash
from ..http_client import get_http_client
from ..models.weather import WeatherCondition, WeatherSnapshot

logger = logging.getLogger(__name__)

SYNTHETIC_CONDITIONS: tuple[WeatherCondition, ...] = (
    WeatherCondition.CLEAR,
    WeatherCondition.CLOUDS,
    WeatherCondition.RAIN,
    WeatherCondition.SNOW,
    WeatherCondition.THUNDERSTORM,
    WeatherCondition.DRIZZLE,
    WeatherCondition.MIST,
)

SYNTHETIC_DESCRIPTIONS: tuple[str, ...] = (
    "clear sky",
    "few clouds",
    "scattered clouds",
    "broken clouds",
    "overcast clouds",
    "light rain",
    "moderate rain",
    "heavy intensity rain",
    "light snow",
    "snow",
    "mist",
    "thunderstorm",
)


@dataclass(slots=True)
class WeatherFetcher:
    settings: Settings | None = None
    client: httpx.AsyncClient | None = None

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()

    async def fetch(self, city: str) -> WeatherSnapshot:
        """Current weather for *city*; never raises for upstream problems.

        Without a configured API key, or when the upstream call fails, a
        synthetic snapshot derived from the city name is returned instead.
        """
        if not self.settings.live_weather_enabled:
            return self.synthetic(city)
        try:
            return await self._fetch_live(city)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Live weather unavailable for %s: %s", city, exc)
            return self.synthetic(city)

    async def _fetch_live(self, city: str) -> WeatherSnapshot:
        client = self.client or await get_http_client()
        params = {
            "q": city,
            "appid": self.settings.weather_api_key,
            "units": "metric",
        }
        response = await client.get(str(self.settings.weather_base_url), params=params)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("weather payload is not an object")
        return _parse_snapshot(city, payload)

    @staticmethod
    def synthetic(city: str) -> WeatherSnapshot:
        seed = stable_hash(city)
        temperature = float(-10 + seed % 45)
        return WeatherSnapshot(
            city=city,
            temperature=temperature,
            feels_like=temperature + (seed % 6 - 3),
            condition=SYNTHETIC_CONDITIONS[seed % len(SYNTHETIC_CONDITIONS)],
            description=SYNTHETIC_DESCRIPTIONS[seed % len(SYNTHETIC_DESCRIPTIONS)],
            humidity=20 + seed % 70,
            wind_speed=(seed % 150) / 10.0,
            pressure=980 + seed % 50,
            visibility=5000 + seed % 5000,
        )


def _parse_snapshot(city: str, payload: dict[str, Any]) -> WeatherSnapshot:
    main = payload.get("main") or {}
    wind = payload.get("wind") or {}
    conditions = payload.get("weather") or []
    first = conditions[0] if conditions and isinstance(conditions[0], dict) else {}
    return WeatherSnapshot(
        city=city,
        temperature=_to_float(main.get("temp")),
        feels_like=_to_float(main.get("feels_like")),
        condition=WeatherCondition.parse(first.get("main")),
        description=first.get("description"),
        humidity=_to_int(main.get("humidity")),
        wind_speed=_to_float(wind.get("speed")),
        pressure=_to_int(main.get("pressure")),
        visibility=_to_int(payload.get("visibility")),
    )


def _to_float(value: Any) -> float | None:
    try:
        if value is None or value == "":
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None
