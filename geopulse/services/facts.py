from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import quote

import httpx

from ..config import Settings, get_settings
from ..errors import CountryNotFoundError, TransientFetchError
from ..http_client import get_http_client
from ..models.country import GENERIC_FLAG, NOT_AVAILABLE, CountryRecord
from .risk import RiskModel

logger = logging.getLogger(__name__)

FLAG_EMOJIS: Mapping[str, str] = MappingProxyType(
    {
        "germany": "\U0001f1e9\U0001f1ea",
        "japan": "\U0001f1ef\U0001f1f5",
        "brazil": "\U0001f1e7\U0001f1f7",
        "norway": "\U0001f1f3\U0001f1f4",
        "united states": "\U0001f1fa\U0001f1f8",
        "united kingdom": "\U0001f1ec\U0001f1e7",
        "france": "\U0001f1eb\U0001f1f7",
        "china": "\U0001f1e8\U0001f1f3",
        "india": "\U0001f1ee\U0001f1f3",
        "australia": "\U0001f1e6\U0001f1fa",
        "canada": "\U0001f1e8\U0001f1e6",
        "mexico": "\U0001f1f2\U0001f1fd",
        "argentina": "\U0001f1e6\U0001f1f7",
        "south korea": "\U0001f1f0\U0001f1f7",
        "italy": "\U0001f1ee\U0001f1f9",
        "spain": "\U0001f1ea\U0001f1f8",
        "netherlands": "\U0001f1f3\U0001f1f1",
        "sweden": "\U0001f1f8\U0001f1ea",
        "denmark": "\U0001f1e9\U0001f1f0",
        "switzerland": "\U0001f1e8\U0001f1ed",
    }
)


@dataclass(slots=True)
class FactsFetcher:
    settings: Settings | None = None
    client: httpx.AsyncClient | None = None
    risk_model: RiskModel = field(default_factory=RiskModel)
    flags: Mapping[str, str] = field(default_factory=lambda: FLAG_EMOJIS)

    def __post_init__(self) -> None:
        if self.settings is None:
            self.settings = get_settings()

    async def fetch(self, country_name: str) -> CountryRecord:
        """Facts-only record for *country_name*.

        Raises:
            CountryNotFoundError: The facts source has no such country.
            TransientFetchError: The facts source is unreachable or answered
                with an unexpected status.
        """
        client = self.client or await get_http_client()
        base = str(self.settings.countries_base_url).rstrip("/")
        url = f"{base}/{quote(country_name)}"
        try:
            response = await client.get(url)
        except httpx.HTTPError as exc:
            logger.warning("Facts source unreachable for %s: %s", country_name, exc)
            raise TransientFetchError(
                f"Country data source unreachable: {exc.__class__.__name__}"
            ) from exc

        if response.status_code == 404:
            raise CountryNotFoundError(country_name)
        if response.status_code != 200:
            raise TransientFetchError(
                f"Country data source returned status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TransientFetchError(
                "Country data source returned an unreadable payload"
            ) from exc

        entry = _first_entry(payload)
        if entry is None or not entry.get("name"):
            raise CountryNotFoundError(country_name)
        return self._build_record(entry, country_name)

    def _build_record(self, entry: dict[str, Any], requested: str) -> CountryRecord:
        name = _canonical_name(entry.get("name"), requested)
        region = entry.get("region") or NOT_AVAILABLE
        assessment = self.risk_model.assess(name, region)
        return CountryRecord(
            country_name=name,
            capital=_first_item(entry.get("capital")) or NOT_AVAILABLE,
            population=max(_to_int(entry.get("population")), 0),
            region=region,
            subregion=entry.get("subregion") or NOT_AVAILABLE,
            area=max(_to_float(entry.get("area")), 0.0),
            currency=_first_currency(entry.get("currencies")) or NOT_AVAILABLE,
            language=_first_value(entry.get("languages")) or NOT_AVAILABLE,
            flag_emoji=entry.get("flag") or self._lookup_flag(name),
            gdp_per_capita=assessment.gdp_per_capita,
            geopolitical_risk_index=assessment.risk_index,
        )

    def _lookup_flag(self, country_name: str) -> str:
        return self.flags.get(country_name.lower(), GENERIC_FLAG)


def _first_entry(payload: Any) -> dict[str, Any] | None:
    if isinstance(payload, list):
        return payload[0] if payload and isinstance(payload[0], dict) else None
    if isinstance(payload, dict):
        return payload
    return None


def _canonical_name(name: Any, fallback: str) -> str:
    if isinstance(name, dict):
        common = name.get("common")
        if isinstance(common, str) and common:
            return common
    elif isinstance(name, str) and name:
        return name
    return fallback


def _first_item(values: Any) -> str | None:
    if isinstance(values, list) and values:
        return str(values[0])
    return None


def _first_value(mapping: Any) -> str | None:
    # dicts keep the upstream key order
    if isinstance(mapping, dict) and mapping:
        return str(next(iter(mapping.values())))
    return None


def _first_currency(currencies: Any) -> str | None:
    if isinstance(currencies, dict) and currencies:
        first = next(iter(currencies.values()))
        if isinstance(first, dict):
            return first.get("name")
    return None


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
