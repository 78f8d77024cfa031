"""Process-independent string hashing for deterministic synthetic data."""

from __future__ import annotations

import hashlib


def stable_hash(value: str) -> int:
    """Non-negative 64-bit integer derived from the SHA-256 of *value*.

    Unlike ``hash()`` the result does not depend on ``PYTHONHASHSEED``.
    """
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def stable_unit(value: str) -> float:
    """Map *value* into ``[0.0, 1.0]``."""
    return stable_hash(value) / float(2**64 - 1)
