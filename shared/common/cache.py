# shared/common/cache.py
"""
Cache Client and Caching Utilities

Thin wrapper around the Django cache (django-redis in deployment). Cache
failures are logged and reported as misses so callers fall back to the
database.
"""

import logging
from typing import Any, Iterable, Optional
from functools import wraps
from django.core.cache import cache

logger = logging.getLogger(__name__)


class CacheClient:
    """
    Best-effort cache client.
    """

    def __init__(self, backend=None):
        self._backend = backend

    @property
    def backend(self):
        return self._backend or cache

    def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            return self.backend.get(key)
        except Exception as e:
            logger.error(f"Cache get error: {e}", extra={'cache_key': key})
            return None

    def set(self, key: str, value: Any, ex: int = None) -> bool:
        """Set value in cache with optional expiration"""
        try:
            self.backend.set(key, value, timeout=ex)
            return True
        except Exception as e:
            logger.error(f"Cache set error: {e}", extra={'cache_key': key})
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache"""
        try:
            self.backend.delete(key)
            return True
        except Exception as e:
            logger.error(f"Cache delete error: {e}", extra={'cache_key': key})
            return False

    def delete_many(self, keys: Iterable[str]) -> bool:
        """Delete several keys at once"""
        keys = list(keys)
        if not keys:
            return True
        try:
            self.backend.delete_many(keys)
            return True
        except Exception as e:
            logger.error(f"Cache delete_many error: {e}", extra={'cache_keys': keys})
            return False


# Singleton instance
cache_client = CacheClient()


# =============================================================================
# CACHING DECORATORS
# =============================================================================

def cached(
    key_prefix: str,
    timeout=300,
    key_func=None
):
    """
    Decorator for read-through caching of function results.

    ``timeout`` may be a callable so settings are read at call time.

    Usage:
        @cached('availability', timeout=60, key_func=lambda field_id, day: ...)
        def load_snapshot(field_id, day):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if key_func:
                cache_key = key_func(*args, **kwargs)
            else:
                key_parts = [str(arg) for arg in args]
                key_parts.extend([f"{k}={v}" for k, v in sorted(kwargs.items())])
                cache_key = f"{key_prefix}:{':'.join(key_parts)}"

            result = cache_client.get(cache_key)
            if result is not None:
                return result

            result = func(*args, **kwargs)
            ttl = timeout() if callable(timeout) else timeout
            cache_client.set(cache_key, result, ex=ttl)

            return result
        return wrapper
    return decorator


class CacheKeyBuilder:
    """
    Helper class for building consistent cache keys.
    """

    def __init__(self, service_name: str):
        self.service_name = service_name

    def build(self, *parts) -> str:
        """Build cache key from parts"""
        return f"{self.service_name}:{':'.join(str(p) for p in parts)}"

    def availability(self, field_id, day) -> str:
        return self.build('availability', field_id, day)
