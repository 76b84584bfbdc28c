"""
Redis cache for analytics reports

Reports are cached as JSON under "analytics:<kind>:<params>" with a TTL.
When Redis cannot be reached the cache turns itself off and every call
falls through to the database.
"""
import json
import logging
from typing import Any, Callable, Optional

import redis

from lms.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    PREFIX = "analytics"

    def __init__(self, url: Optional[str] = None, ttl: Optional[int] = None):
        self.ttl = ttl or settings.ANALYTICS_CACHE_TTL
        self.redis_client = self._connect(url or settings.REDIS_URL)

    def _connect(self, url: str) -> Optional[redis.Redis]:
        try:
            client = redis.from_url(url, decode_responses=True, socket_connect_timeout=2)
            client.ping()
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis unavailable ({e}); analytics caching disabled")
            return None

        logger.info("Analytics cache connected")
        return client

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def generate_cache_key(self, kind: str, *parts: Any) -> str:
        """analytics:trends:30"""
        return ":".join([self.PREFIX, kind, *(str(p) for p in parts)])

    def get(self, key: str) -> Optional[Any]:
        if not self.enabled:
            return None

        try:
            raw = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache read failed for {key}: {e}")
            return None

        if raw is None:
            logger.debug(f"Cache miss: {key}")
            return None

        logger.debug(f"Cache hit: {key}")
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a JSON-serializable value; datetimes and UUIDs become strings"""
        if not self.enabled:
            return False

        try:
            self.redis_client.setex(key, ttl or self.ttl, json.dumps(value, default=str))
        except redis.RedisError as e:
            logger.error(f"Cache write failed for {key}: {e}")
            return False

        return True

    def get_or_build(self, key: str, build: Callable[[], Any]) -> Any:
        """
        Return the cached report for key, building and storing it on a miss

        Args:
            key: Cache key from generate_cache_key
            build: Zero-argument callable producing the report

        Returns:
            The report, as cached JSON when it came from Redis
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        value = build()
        self.set(key, value)
        return value

    def clear_analytics_cache(self) -> bool:
        """Drop every cached analytics report after a write that changes them"""
        if not self.enabled:
            return False

        try:
            keys = list(self.redis_client.scan_iter(match=f"{self.PREFIX}:*"))
            if keys:
                self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.error(f"Cache invalidation failed: {e}")
            return False

        logger.info(f"Invalidated {len(keys)} analytics reports")
        return True


# Global instance
cache_service = CacheService()
