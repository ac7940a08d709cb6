"""
Cache API Endpoints.

Inspection and maintenance of the Redis cache. Everything except
``/health`` requires the ADMIN role. Unlike the note routes, these
surface an unreachable Redis as 503.
"""

from fastapi import APIRouter

from notekeeper.core.dependencies import AdminUser, Cache, RequestId
from notekeeper.core.exceptions import CacheUnavailableError
from notekeeper.core.logging import get_logger
from notekeeper.core.utils import utc_now
from notekeeper.schemas.base import ApiResponse, ResponseMetadata
from notekeeper.schemas.cache import CacheHealth, CacheKeyExists, CacheKeyTtl, CacheKeyValue

router = APIRouter()
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=ApiResponse[CacheHealth],
    summary="Cache connectivity",
)
async def cache_health(cache: Cache, request_id: RequestId) -> ApiResponse[CacheHealth]:
    """Ping Redis. Reports an outage in the body rather than failing."""
    start = utc_now()
    try:
        await cache.ping()
    except CacheUnavailableError as e:
        health = CacheHealth(status="unhealthy", error=e.message)
    else:
        health = CacheHealth(
            status="healthy",
            latency_ms=int((utc_now() - start).total_seconds() * 1000),
        )
    return ApiResponse(data=health, metadata=ResponseMetadata(request_id=request_id))


@router.get(
    "/keys/{key}",
    response_model=ApiResponse[CacheKeyValue],
    summary="Read a cache entry (admin)",
)
async def get_key(
    key: str,
    admin: AdminUser,
    cache: Cache,
    request_id: RequestId,
) -> ApiResponse[CacheKeyValue]:
    if not await cache.exists(key):
        return ApiResponse(
            data=CacheKeyValue(key=key, found=False),
            metadata=ResponseMetadata(request_id=request_id),
        )
    value = await cache.get(key)
    return ApiResponse(
        data=CacheKeyValue(key=key, found=True, value=value),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/keys/{key}/exists",
    response_model=ApiResponse[CacheKeyExists],
    summary="Check a cache entry (admin)",
)
async def key_exists(
    key: str,
    admin: AdminUser,
    cache: Cache,
    request_id: RequestId,
) -> ApiResponse[CacheKeyExists]:
    return ApiResponse(
        data=CacheKeyExists(key=key, exists=await cache.exists(key)),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.get(
    "/keys/{key}/ttl",
    response_model=ApiResponse[CacheKeyTtl],
    summary="Remaining TTL of a cache entry (admin)",
)
async def key_ttl(
    key: str,
    admin: AdminUser,
    cache: Cache,
    request_id: RequestId,
) -> ApiResponse[CacheKeyTtl]:
    return ApiResponse(
        data=CacheKeyTtl(key=key, ttl_seconds=await cache.ttl_remaining(key)),
        metadata=ResponseMetadata(request_id=request_id),
    )


@router.delete(
    "/keys/{key}",
    status_code=204,
    summary="Evict a cache entry (admin)",
)
async def delete_key(key: str, admin: AdminUser, cache: Cache) -> None:
    removed = await cache.delete(key)
    logger.info("Cache key evicted by admin", extra={"key": key, "removed": removed, "admin": admin.username})


@router.delete(
    "",
    status_code=204,
    summary="Clear the whole cache (admin)",
)
async def clear_cache(admin: AdminUser, cache: Cache) -> None:
    await cache.clear_all()
    logger.warning("Cache cleared by admin", extra={"admin": admin.username})
