"""
Redis Cache Manager shared across API replicas
Handles TTL-bound values and prefix invalidation
"""
import json
import logging
from typing import Any, Optional, Dict
import redis
from .config import CacheConfig

logger = logging.getLogger(__name__)

class CacheManager:
    """Redis-based cache manager; every call is a no-op when Redis is absent"""

    def __init__(self, redis_client: Optional[redis.Redis] = None):
        """Initialize cache manager with Redis client"""
        self.redis_client = redis_client
        self.config = CacheConfig()
        self.enabled = redis_client is not None

        if not self.enabled:
            logger.debug("Cache manager initialized without Redis client - shared caching disabled")

    def _generate_key(self, key_type: str, identifier: str) -> str:
        """Generate cache key with proper prefix"""
        prefix = self.config.get_key_prefix(key_type)
        return f"{prefix}{identifier}"

    def _serialize_data(self, data: Any) -> str:
        return json.dumps(data, default=str)

    def _deserialize_data(self, data: str) -> Any:
        try:
            return json.loads(data)
        except (json.JSONDecodeError, TypeError):
            return data

    def set(self, key_type: str, identifier: str, data: Any, ttl: Optional[int] = None) -> bool:
        """Set cache value with TTL"""
        if not self.enabled:
            return False

        try:
            cache_key = self._generate_key(key_type, identifier)
            if ttl is None:
                ttl = self.config.get_ttl_for_key_type(key_type)

            result = self.redis_client.setex(cache_key, ttl, self._serialize_data(data))
            logger.debug(f"Cache SET: {cache_key} (TTL: {ttl}s)")
            return bool(result)
        except Exception as e:
            logger.error(f"Cache SET error for {key_type}:{identifier}: {e}")
            return False

    def get(self, key_type: str, identifier: str) -> Optional[Any]:
        """Get cache value"""
        if not self.enabled:
            return None

        try:
            cache_key = self._generate_key(key_type, identifier)
            data = self.redis_client.get(cache_key)

            if data is None:
                logger.debug(f"Cache MISS: {cache_key}")
                return None

            logger.debug(f"Cache HIT: {cache_key}")
            return self._deserialize_data(data)
        except Exception as e:
            logger.error(f"Cache GET error for {key_type}:{identifier}: {e}")
            return None

    def invalidate_pattern(self, pattern: str) -> int:
        """Invalidate all keys matching pattern"""
        if not self.enabled:
            return 0

        try:
            keys = self.redis_client.keys(pattern)
            if keys:
                deleted = self.redis_client.delete(*keys)
                logger.info(f"Cache INVALIDATE: {len(keys)} keys matching '{pattern}'")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"Cache INVALIDATE error for pattern '{pattern}': {e}")
            return 0

    # GIS entitlement methods
    def cache_gis_permission(self, organization_id: str, feature: str, allowed: bool) -> bool:
        return self.set("gis_permission", f"{organization_id}:{feature}", allowed)

    def get_cached_gis_permission(self, organization_id: str, feature: str) -> Optional[bool]:
        value = self.get("gis_permission", f"{organization_id}:{feature}")
        return value if isinstance(value, bool) else None

    def invalidate_gis_permissions(self, organization_id: str) -> int:
        """Drop every cached entitlement of an organization"""
        pattern = f"{self.config.GIS_PERMISSION_PREFIX}{organization_id}:*"
        return self.invalidate_pattern(pattern)

    # Health and monitoring
    def health_check(self) -> Dict[str, Any]:
        """Check cache health and return status"""
        if not self.enabled:
            return {"status": "disabled", "redis_available": False}

        try:
            test_key = "health_check_test"
            self.redis_client.setex(test_key, 10, "test")
            result = self.redis_client.get(test_key)
            self.redis_client.delete(test_key)

            info = self.redis_client.info()

            return {
                "status": "healthy" if result == "test" else "error",
                "redis_available": True,
                "connected_clients": info.get("connected_clients", 0),
                "used_memory_human": info.get("used_memory_human", "unknown")
            }
        except Exception as e:
            logger.error(f"Cache health check failed: {e}")
            return {
                "status": "error",
                "redis_available": False
            }
