import asyncio
import logging

import httpx

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

_client: httpx.AsyncClient | None = None
_client_lock = asyncio.Lock()


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Client shared by the facts, weather and news fetchers.

    The timeout applies to every upstream call individually.
    """
    limits = httpx.Limits(
        max_connections=settings.http_max_connections,
        max_keepalive_connections=settings.http_max_keepalive,
    )
    return httpx.AsyncClient(
        timeout=settings.http_timeout,
        limits=limits,
        headers={"User-Agent": settings.http_user_agent},
        follow_redirects=True,
    )


async def get_http_client() -> httpx.AsyncClient:
    global _client

    if _client is None:
        async with _client_lock:
            if _client is None:
                _client = build_http_client(get_settings())
                logger.debug("Shared HTTP client created")
    return _client


async def shutdown_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.debug("Shared HTTP client closed")
