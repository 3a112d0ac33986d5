"""
Redis Cache Service for seller lookups.

Best-effort accelerator: a failed read counts as a miss and a failed
write or delete is logged and swallowed, so Redis outages never fail a request.
"""
import json
from typing import Optional, Any, Dict
from redis.asyncio import Redis
from redis.exceptions import RedisError

from seller_service.app.core.constants import (
    SELLER_CACHE_KEY_BY_ID,
    SELLER_CACHE_KEY_BY_USER,
    SELLER_CACHE_TTL,
)
from seller_service.app.core.logging import get_logger
from seller_service.app.core.metrics import redis_operations_total
from seller_service.app.core.settings import get_settings

logger = get_logger(__name__)


class CacheService:
    """Service for caching operations using Redis."""

    _redis: Optional[Redis] = None

    TTL_DEFAULT = 300          # 5 minutes

    @classmethod
    async def get_redis(cls) -> Redis:
        """Get or create Redis connection."""
        if cls._redis is None:
            settings = get_settings()
            cls._redis = Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                db=settings.REDIS_DB,
                password=settings.REDIS_PASSWORD,
                decode_responses=True,
            )
        return cls._redis

    @classmethod
    async def close(cls):
        """Close Redis connection."""
        if cls._redis:
            await cls._redis.aclose()
            cls._redis = None

    def __init__(self, redis: Optional[Redis], enabled: bool = True, seller_ttl: int = SELLER_CACHE_TTL):
        self.redis = redis
        self.enabled = enabled and redis is not None
        self.seller_ttl = seller_ttl

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache. Any failure is reported as a miss."""
        if not self.enabled:
            return None
        try:
            data = await self.redis.get(key)
        except (RedisError, OSError) as e:
            redis_operations_total.labels(operation="get", status="error").inc()
            logger.warning("Cache get failed", key=key, error=str(e))
            return None
        if not data:
            redis_operations_total.labels(operation="get", status="miss").inc()
            return None
        try:
            value = json.loads(data)
        except ValueError:
            redis_operations_total.labels(operation="get", status="error").inc()
            logger.warning("Cache entry is not valid JSON, ignoring", key=key)
            return None
        redis_operations_total.labels(operation="get", status="hit").inc()
        return value

    async def set(self, key: str, value: Any, ttl: int = TTL_DEFAULT) -> bool:
        """Set value in cache with TTL."""
        if not self.enabled:
            return False
        try:
            await self.redis.set(key, json.dumps(value, ensure_ascii=False, default=str), ex=ttl)
        except (RedisError, OSError, TypeError) as e:
            redis_operations_total.labels(operation="set", status="error").inc()
            logger.warning("Cache set failed", key=key, error=str(e))
            return False
        redis_operations_total.labels(operation="set", status="ok").inc()
        return True

    async def delete(self, key: str) -> bool:
        """Delete value from cache. Returns True if a key was removed."""
        if not self.enabled:
            return False
        try:
            removed = await self.redis.delete(key)
        except (RedisError, OSError) as e:
            redis_operations_total.labels(operation="delete", status="error").inc()
            logger.warning("Cache delete failed", key=key, error=str(e))
            return False
        redis_operations_total.labels(operation="delete", status="ok").inc()
        return bool(removed)

    # ----- Convenience methods for sellers -----

    @staticmethod
    def seller_id_key(seller_id: int) -> str:
        return SELLER_CACHE_KEY_BY_ID.format(seller_id=seller_id)

    @staticmethod
    def seller_user_key(user_id: int) -> str:
        return SELLER_CACHE_KEY_BY_USER.format(user_id=user_id)

    async def get_seller(self, seller_id: int) -> Optional[Dict[str, Any]]:
        """Get cached seller snapshot by seller id."""
        return await self.get(self.seller_id_key(seller_id))

    async def get_seller_by_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get cached seller snapshot by owning user id."""
        return await self.get(self.seller_user_key(user_id))

    async def set_seller(self, seller: Dict[str, Any]):
        """Cache seller snapshot under both keys."""
        await self.set(self.seller_id_key(seller["id"]), seller, self.seller_ttl)
        await self.set(self.seller_user_key(seller["user_id"]), seller, self.seller_ttl)

    async def invalidate_seller(self, seller_id: int, user_id: int):
        """Invalidate both keys of a seller. Call only after the database write succeeded."""
        await self.delete(self.seller_id_key(seller_id))
        await self.delete(self.seller_user_key(user_id))
