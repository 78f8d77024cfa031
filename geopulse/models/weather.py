from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class WeatherCondition(str, Enum):
    CLEAR = "Clear"
    CLOUDS = "Clouds"
    RAIN = "Rain"
    SNOW = "Snow"
    THUNDERSTORM = "Thunderstorm"
    DRIZZLE = "Drizzle"
    MIST = "Mist"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> WeatherCondition | None:
        if not value:
            return None
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        return cls.UNKNOWN


class WeatherSnapshot(BaseModel):
    city: str = Field(description="City (or country) the reading applies to")
    temperature: float | None = Field(default=None, description="Celsius")
    feels_like: float | None = Field(default=None, description="Celsius")
    condition: WeatherCondition | None = Field(default=None)
    description: str | None = Field(default=None, description="Free-text summary")
    humidity: int | None = Field(default=None, ge=0, le=100, description="Percent")
    wind_speed: float | None = Field(default=None, ge=0, description="m/s")
    pressure: int | None = Field(default=None, description="hPa")
    visibility: int | None = Field(default=None, ge=0, description="Metres")
