"""DayFusion cache package."""

from dayfusion.cache.ttl_cache import CacheEntry, TTLCache, structural_key

__all__ = [
    "TTLCache",
    "CacheEntry",
    "structural_key",
]
