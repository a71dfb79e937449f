"""
Cache abstraction layer.

Provides a unified interface for TTL caching, backed by cachetools.
"""
from typing import TypeVar, Callable, Any
from cachetools import TTLCache

T = TypeVar('T')


def create_ttl_cache(maxsize: int = 100, ttl: float = 300) -> TTLCache:
    """
    Create a TTL cache with automatic expiration.

    Args:
        maxsize: Maximum number of items in cache
        ttl: Time-to-live in seconds (default: 5 minutes)

    Returns:
        TTLCache instance

    Example:
        cache = create_ttl_cache(maxsize=4, ttl=5)
        cache["config"] = raw
        raw = cache.get("config")
    """
    return TTLCache(maxsize=maxsize, ttl=ttl)


def cached_call(cache: Any, key: str, loader: Callable[[], T]) -> T:
    """
    Get value from cache or load it.

    Loader errors propagate; nothing is cached for a failed load.

    Args:
        cache: Cache instance (TTLCache or dict-like)
        key: Cache key
        loader: Function to call if key not in cache

    Returns:
        Cached or freshly loaded value
    """
    try:
        return cache[key]
    except KeyError:
        value = loader()
        cache[key] = value
        return value
