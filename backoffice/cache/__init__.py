"""
Cache module for the back-office API
In-process TTL caching, request deduplication and the shared Redis cache
"""

from .ttl_cache import TTLCache, CacheEntry
from .dedup import RequestDeduplicator
from .decorators import deduplicated
from .manager import CacheManager
from .config import CacheConfig

__all__ = [
    'TTLCache',
    'CacheEntry',
    'RequestDeduplicator',
    'deduplicated',
    'CacheManager',
    'CacheConfig'
]
