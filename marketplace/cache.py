"""
Redis-backed JSON cache for upstream lookups (places, geocoding) and the
public provider listing.

Reads and writes never raise: when Redis is down every lookup is a miss and
callers fall through to the source.
"""
import json
import logging
from typing import Any, Callable, Optional

from .rate_limiter import get_redis_client

logger = logging.getLogger(__name__)

APPROVED_PROVIDERS_KEY = "providers:approved"


class Cache:
    def __init__(self, namespace: str = ""):
        self.namespace = namespace
        self.redis_client = None

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def _connection(self):
        if self.redis_client is not None:
            return self.redis_client
        try:
            self.redis_client = get_redis_client()
        except Exception as e:
            logger.warning(f"⚠️ Cache disabled, Redis unreachable: {e}")
        return self.redis_client

    def get(self, key: str) -> Optional[Any]:
        conn = self._connection()
        if conn is None:
            return None
        try:
            raw = conn.get(self._key(key))
        except Exception as e:
            logger.error(f"❌ Cache read failed for {key}: {e}")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"⚠️ Dropping unreadable cache entry {key}")
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: int = 3600) -> bool:
        conn = self._connection()
        if conn is None:
            return False
        try:
            conn.setex(self._key(key), ttl, json.dumps(value, default=str))
        except Exception as e:
            logger.error(f"❌ Cache write failed for {key}: {e}")
            return False
        logger.debug(f"💾 Cached {key} for {ttl}s")
        return True

    def delete(self, key: str) -> bool:
        conn = self._connection()
        if conn is None:
            return False
        try:
            conn.delete(self._key(key))
        except Exception as e:
            logger.error(f"❌ Cache delete failed for {key}: {e}")
            return False
        return True

    def remember(self, key: str, ttl: int, load: Callable[[], Any]) -> Any:
        """Cached value for key, computed with load() and stored on a miss"""
        value = self.get(key)
        if value is None:
            value = load()
            self.set(key, value, ttl=ttl)
        return value


cache = Cache()


def invalidate_approved_providers() -> bool:
    """Drop the public provider listing after an approval"""
    return cache.delete(APPROVED_PROVIDERS_KEY)
