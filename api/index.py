from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, Path, Query
from fastapi.responses import ORJSONResponse
from mangum import Mangum

from geopulse import __version__
from geopulse.cache import CountryCache
from geopulse.config import get_settings
from geopulse.http_client import shutdown_http_client
from geopulse.logging_config import setup_logging
from geopulse.models import CountryRecord
from geopulse.services import CountryService

logger = logging.getLogger(__name__)

SERVICE_NAME = "GeoPulse Backend"
UNEXPECTED_ERROR_MESSAGE = "Service temporarily unavailable. Please try again."

app = FastAPI(
    title="GeoPulse Country Intelligence API",
    version=__version__,
    description=(
        "Country facts, live weather and headlines merged into one response, "
        "with derived GDP and geopolitical risk estimates."
    ),
    default_response_class=ORJSONResponse,
)


@lru_cache
def get_country_cache() -> CountryCache:
    return CountryCache.from_settings(get_settings())


def get_country_service() -> CountryService:
    return CountryService(cache=get_country_cache())


@app.on_event("startup")
async def on_startup() -> None:
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    logger.info(
        "%s %s starting (cache=%s, weather=%s)",
        SERVICE_NAME,
        __version__,
        settings.cache_backend,
        "live" if settings.live_weather_enabled else "synthetic",
    )


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {
        "status": "UP",
        "service": SERVICE_NAME,
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health/status", tags=["system"])
async def health_status(
    cache: CountryCache = Depends(get_country_cache),
) -> dict[str, Any]:
    settings = get_settings()
    status: dict[str, Any] = {
        "cache_backend": cache.backend.name,
        "countries_api": str(settings.countries_base_url),
        "weather_api": "live" if settings.live_weather_enabled else "synthetic",
        "news_feeds": "OPERATIONAL",
    }
    ping = getattr(cache.backend, "ping", None)
    try:
        if ping is not None:
            await asyncio.to_thread(ping)
        status["cache"] = "CONNECTED"
        status["overall"] = "HEALTHY"
    except Exception as exc:
        logger.warning("Cache health check failed: %s", exc)
        status["cache"] = "UNAVAILABLE"
        status["overall"] = "DEGRADED"
    return status


@app.get("/countries/search", tags=["countries"])
async def search_countries(
    query: str = Query(..., max_length=100, description="Part of a country name"),
) -> list[str]:
    return CountryService.search(query)


@app.get("/countries/{country_name}", tags=["countries"], response_model=CountryRecord)
async def get_country(
    country_name: str = Path(..., description="Country name, e.g. Norway"),
    service: CountryService = Depends(get_country_service),
):
    try:
        result = await service.resolve(country_name)
    except Exception:
        logger.exception("Unexpected failure while resolving %r", country_name)
        placeholder = CountryRecord.placeholder(
            country_name.strip(), UNEXPECTED_ERROR_MESSAGE
        )
        return ORJSONResponse(
            status_code=500, content=placeholder.model_dump(mode="json")
        )
    return ORJSONResponse(
        status_code=result.status_code,
        content=result.to_payload().model_dump(mode="json"),
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await shutdown_http_client()


handler = Mangum(app)
