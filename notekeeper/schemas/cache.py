"""
Cache Admin Schemas.

Response payloads for the cache inspection endpoints.
"""

from typing import Any

from pydantic import BaseModel


class CacheHealth(BaseModel):
    status: str
    latency_ms: int | None = None
    error: str | None = None


class CacheKeyValue(BaseModel):
    key: str
    found: bool
    value: Any = None


class CacheKeyExists(BaseModel):
    key: str
    exists: bool


class CacheKeyTtl(BaseModel):
    """``ttl_seconds`` is -1 for keys without expiry and None for missing keys."""

    key: str
    ttl_seconds: int | None
