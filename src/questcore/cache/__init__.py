"""Scope-keyed TTL cache."""

from questcore.cache.ttl_cache import CACHE_EXPIRY, CachedValue, TTLCache

__all__ = ["CACHE_EXPIRY", "CachedValue", "TTLCache"]
