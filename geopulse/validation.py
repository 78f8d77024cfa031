from __future__ import annotations

import re

from .errors import InvalidInputError

MIN_NAME_LENGTH = 2

_DIGITS = re.compile(r"[0-9]")
_FORBIDDEN = re.compile(r"[!@#$%^&*()_+={}\[\]:;\"'<>,.?/|\\]")


def validate_country_name(raw: str | None) -> str:
    """Trimmed country name, or ``InvalidInputError`` naming the broken rule."""
    name = (raw or "").strip()
    if not name:
        raise InvalidInputError("Country name cannot be empty")
    if len(name) < MIN_NAME_LENGTH:
        raise InvalidInputError(
            f"Country name must be at least {MIN_NAME_LENGTH} characters long"
        )
    if _DIGITS.search(name) or _FORBIDDEN.search(name):
        raise InvalidInputError("Invalid country name format")
    return name
