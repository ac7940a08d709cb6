"""
Cache Client.

Thin async wrapper around Redis used as a side cache. The cache is never
the source of truth: every value it holds mirrors a database row or an
aggregate computed from rows.

Failure policy:
    Reads (``get``) degrade to a miss when Redis is unreachable or the
    stored payload no longer decodes. Everything else raises
    CacheUnavailableError and lets the caller decide whether the failure
    matters.

Usage:
    from notekeeper.core.cache import CacheClient, CacheKeys

    cache = CacheClient(redis.from_url(url), keys=CacheKeys("nk:"))
    await cache.set(cache.keys.note(note.id), response, ttl=1800)
    cached = await cache.get(cache.keys.note(note.id), NoteResponse)
"""

import json
from collections.abc import AsyncGenerator
from functools import lru_cache
from typing import Any, TypeVar

import redis.asyncio as redis
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import to_json
from redis.exceptions import RedisError

from notekeeper.core.exceptions import CacheUnavailableError
from notekeeper.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class CacheKeys:
    """
    Key builders for every cache namespace.

    All key strings in the application come from here so that population
    and invalidation cannot drift apart.

    Args:
        prefix: Prepended to every key (``cache.key_prefix``)
    """

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def note(self, note_id: str) -> str:
        return f"{self.prefix}note:{note_id}"

    def user_notes(self, owner_id: str) -> str:
        return f"{self.prefix}user:notes:{owner_id}"

    def user_categories(self, owner_id: str) -> str:
        return f"{self.prefix}user:categories:{owner_id}"

    def user_count_total(self, owner_id: str) -> str:
        return f"{self.prefix}user:count:total:{owner_id}"

    def owner_collections(self, owner_id: str) -> list[str]:
        """Every owner-scoped collection and aggregate key."""
        return [
            self.user_notes(owner_id),
            self.user_categories(owner_id),
            self.user_count_total(owner_id),
        ]


@lru_cache(maxsize=64)
def _adapter(type_: Any) -> TypeAdapter:
    return TypeAdapter(type_)


class CacheClient:
    """
    Typed key-value operations with per-key TTL.

    Values are stored as JSON. ``get`` validates the payload back into the
    requested type with pydantic, so cached DTOs come back as models.

    Args:
        client: Async Redis client
        keys: Key builders; unprefixed when omitted
    """

    def __init__(self, client: redis.Redis, keys: CacheKeys | None = None) -> None:
        self._client = client
        self.keys = keys or CacheKeys()

    @property
    def client(self) -> redis.Redis:
        """Underlying Redis client."""
        return self._client

    async def get(self, key: str, type_: Any = None) -> Any:
        """
        Read a value.

        Args:
            key: Cache key
            type_: Expected type (model, ``list[Model]``, ``int`` ...).
                Raw JSON is returned when omitted.

        Returns:
            Decoded value, or None on miss, backend failure or a payload
            that does not validate as ``type_``
        """
        try:
            raw = await self._client.get(key)
        except RedisError as e:
            logger.warning("Cache read failed, treating as miss", extra={"key": key, "error": str(e)})
            return None

        if raw is None:
            logger.debug("Cache miss", extra={"key": key})
            return None

        try:
            if type_ is None:
                return json.loads(raw)
            return _adapter(type_).validate_json(raw)
        except (PydanticValidationError, ValueError) as e:
            logger.warning("Cache payload undecodable, treating as miss", extra={"key": key, "error": str(e)})
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Store a value, optionally with a TTL in seconds.

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        payload = to_json(value)
        try:
            await self._client.set(key, payload, ex=ttl)
        except RedisError as e:
            logger.error("Cache write failed", extra={"key": key, "error": str(e)})
            raise CacheUnavailableError(f"Cache write failed for {key}") from e
        logger.debug("Cache set", extra={"key": key, "ttl": ttl})

    async def delete(self, key: str) -> bool:
        """
        Remove a key.

        Returns:
            True if the key existed

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        return await self.delete_many(key) > 0

    async def delete_many(self, *keys: str) -> int:
        """
        Remove several keys in one round trip.

        Returns:
            Number of keys that existed

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        if not keys:
            return 0
        try:
            removed = await self._client.delete(*keys)
        except RedisError as e:
            logger.error("Cache delete failed", extra={"keys": list(keys), "error": str(e)})
            raise CacheUnavailableError("Cache delete failed") from e
        logger.debug("Cache delete", extra={"keys": list(keys), "removed": removed})
        return int(removed)

    async def exists(self, key: str) -> bool:
        """
        Check whether a key is present.

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        try:
            return bool(await self._client.exists(key))
        except RedisError as e:
            raise CacheUnavailableError(f"Cache lookup failed for {key}") from e

    async def ttl_remaining(self, key: str) -> int | None:
        """
        Seconds until a key expires.

        Returns:
            Remaining seconds, -1 for a key without expiry, None if the
            key does not exist

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        try:
            ttl = await self._client.ttl(key)
        except RedisError as e:
            raise CacheUnavailableError(f"Cache TTL lookup failed for {key}") from e
        if ttl == -2:
            return None
        return int(ttl)

    async def clear_all(self) -> None:
        """
        Drop every key in the configured Redis database.

        Unscoped across tenants; only reachable from admin endpoints.

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        try:
            await self._client.flushdb()
        except RedisError as e:
            logger.error("Cache clear failed", extra={"error": str(e)})
            raise CacheUnavailableError("Cache clear failed") from e
        logger.warning("Cache cleared")

    async def ping(self) -> bool:
        """
        Round-trip to Redis.

        Raises:
            CacheUnavailableError: If Redis cannot be reached
        """
        try:
            return bool(await self._client.ping())
        except RedisError as e:
            raise CacheUnavailableError("Cache ping failed") from e

    async def close(self) -> None:
        await self._client.aclose()


# Module-level state for lazy initialization
_cache: CacheClient | None = None


def create_cache_client() -> CacheClient:
    """Build a CacheClient from database.yaml redis settings and secrets."""
    from notekeeper.core.config import get_app_config, get_redis_url

    app_config = get_app_config()
    client = redis.from_url(
        get_redis_url(),
        socket_timeout=app_config.database.redis.socket_timeout,
        socket_connect_timeout=app_config.database.redis.socket_timeout,
    )
    return CacheClient(client, keys=CacheKeys(app_config.cache.key_prefix))


def get_cache_client() -> CacheClient:
    """Get the shared cache client, creating it on first use."""
    global _cache
    if _cache is None:
        _cache = create_cache_client()
    return _cache


async def get_cache() -> AsyncGenerator[CacheClient, None]:
    """
    Dependency that provides the cache client.

    Usage in endpoints:
        @router.get("/items")
        async def get_items(cache: CacheClient = Depends(get_cache)):
            ...
    """
    yield get_cache_client()


async def close_cache() -> None:
    """Close the shared cache client. Called on application shutdown."""
    global _cache
    if _cache is not None:
        await _cache.close()
    _cache = None
