"""Error taxonomy for country lookups.

Every error raised across the service boundary is a ``GeoPulseError``
carrying a ``kind`` and the HTTP status the API answers with. Cache and
live-enrichment failures never reach callers; they are logged and
degraded where they happen.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    CACHE = "cache"
    INTERNAL = "internal"


class GeoPulseError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(GeoPulseError):
    kind = ErrorKind.INVALID_INPUT
    status_code = 400


class CountryNotFoundError(GeoPulseError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, country_name: str) -> None:
        super().__init__(
            f"Country '{country_name}' not found. "
            "Please check the spelling and try again."
        )
        self.country_name = country_name


class TransientFetchError(GeoPulseError):
    kind = ErrorKind.TRANSIENT
    status_code = 503

    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Service temporarily unavailable ({detail}). Please try again."
        )
        self.detail = detail


class CacheError(GeoPulseError):
    kind = ErrorKind.CACHE
