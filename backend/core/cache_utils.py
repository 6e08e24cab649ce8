"""
Caching helpers
Uses Redis (django-redis) when configured, any Django cache backend otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
WORK_ITEMS_CACHE_TTL = 600  # 10 minutes

WORK_ITEMS_CACHE_PREFIX = "work_items"


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    # Convert args and kwargs to a stable string representation
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable (and tokens out of the key)
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Uses SCAN on Redis; other backends cannot list keys, so they are cleared
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")
    except NotImplementedError:
        cache.clear()
        logger.debug(f"Cache backend has no key scan, cleared cache for pattern: {pattern}")
        return

    keys = []
    cursor = 0
    while True:
        cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
        keys.extend(partial_keys)
        if cursor == 0:
            break

    if keys:
        redis_conn.delete(*keys)
        logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")


def get_cached_work_items(user_id, category=None):
    """
    Get cached work item template listing for a user
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key(WORK_ITEMS_CACHE_PREFIX, str(user_id), category or '')
    return cache.get(cache_key), cache_key


def cache_work_items(cache_key, data, ttl=WORK_ITEMS_CACHE_TTL):
    """Cache work item template listing"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached work items: {cache_key}")


def invalidate_work_items_cache():
    """Invalidate every cached work item listing"""
    invalidate_cache_pattern(WORK_ITEMS_CACHE_PREFIX)
