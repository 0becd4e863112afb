"""
Caching utilities for expensive queries
Uses Redis (django-redis) when configured, local memory otherwise
"""
from django.core.cache import cache
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
PRODUCTS_LIST_CACHE_TTL = 120  # 2 minutes
DASHBOARD_KPI_CACHE_TTL = 300  # 5 minutes
VENDOR_SALES_CACHE_TTL = 300  # 5 minutes


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    # Hash it to keep key length reasonable
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern
    Uses Redis SCAN when available; other backends are cleared entirely
    """
    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

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
    except NotImplementedError:
        # Not a Redis backend (local memory in development and tests)
        cache.clear()
        logger.debug(f"Cleared local cache for pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_cached_products_list(filters_dict):
    """
    Get cached products list with filters
    Returns tuple: (cached_data, cache_key)
    """
    cache_key = make_cache_key("products_list", **filters_dict)
    return cache.get(cache_key), cache_key


def cache_products_list(cache_key, data, ttl=PRODUCTS_LIST_CACHE_TTL):
    """Cache products list data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached products list: {cache_key}")


def get_cached_dashboard_kpis(day):
    """Get cached admin dashboard payload for a day"""
    cache_key = make_cache_key("dashboard_kpis", str(day))
    return cache.get(cache_key), cache_key


def cache_dashboard_kpis(cache_key, data, ttl=DASHBOARD_KPI_CACHE_TTL):
    """Cache dashboard KPIs data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached dashboard KPIs: {cache_key}")


def get_cached_vendor_sales(vendor_id, day):
    """Get cached vendor sales payload"""
    cache_key = make_cache_key("vendor_sales", vendor_id, str(day))
    return cache.get(cache_key), cache_key


def cache_vendor_sales(cache_key, data, ttl=VENDOR_SALES_CACHE_TTL):
    """Cache vendor sales data"""
    cache.set(cache_key, data, ttl)
    logger.debug(f"Cached vendor sales: {cache_key}")


def invalidate_products_cache():
    """Invalidate all products-related cache"""
    invalidate_cache_pattern("products_list")
    logger.info("Invalidated products cache")


def invalidate_reports_cache():
    """Invalidate dashboard and vendor sales cache"""
    invalidate_cache_pattern("dashboard_kpis")
    invalidate_cache_pattern("vendor_sales")
    logger.info("Invalidated reports cache")
