"""
Redis caching utilities for read-mostly catalogue data (branches, seating types)
"""
import json
import logging
from typing import Any, Optional

from .config import CACHE_ENABLED
from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

BRANCHES_KEY_PREFIX = "branches"
SEATING_TYPES_KEY_PREFIX = "seating_types"


class Cache:
    """Redis cache wrapper with automatic JSON serialization"""

    def __init__(self, enabled: bool = CACHE_ENABLED):
        self.enabled = enabled
        self.redis_client = None

    def _get_client(self):
        """Lazy load Redis client"""
        if not self.enabled:
            return None
        if self.redis_client is None:
            try:
                self.redis_client = get_redis_client()
            except Exception as e:
                logger.warning(f"⚠️ Redis cache unavailable: {e}")
                return None
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        client = self._get_client()
        if not client:
            return None

        try:
            value = client.get(key)
            if value:
                logger.debug(f"✅ Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"❌ Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"❌ Cache get error for {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Set value in cache with TTL (default 5 minutes)"""
        client = self._get_client()
        if not client:
            return False

        try:
            client.setex(key, ttl, json.dumps(value, default=str))
            logger.debug(f"✅ Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"❌ Cache set error for {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern (e.g., 'branches:*')"""
        client = self._get_client()
        if not client:
            return 0

        try:
            keys = list(client.scan_iter(match=pattern))
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"✅ Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except Exception as e:
            logger.error(f"❌ Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
cache = Cache()


def build_key(prefix: str, **params) -> str:
    """Stable cache key from a prefix and query parameters"""
    parts = [f"{k}={params[k]}" for k in sorted(params) if params[k] is not None]
    return f"{prefix}:{'&'.join(parts) or 'all'}"


def invalidate_catalogue() -> None:
    """Drop cached branch and seating type listings after a write"""
    cache.delete_pattern(f"{BRANCHES_KEY_PREFIX}:*")
    cache.delete_pattern(f"{SEATING_TYPES_KEY_PREFIX}:*")
