"""
In-process TTL cache used by the domain data services
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .config import CacheConfig

logger = logging.getLogger(__name__)

@dataclass
class CacheEntry:
    data: Any
    timestamp: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.timestamp <= self.ttl

class TTLCache:
    """Key/value store with per-entry expiry and lazy eviction on read.

    Not shared between processes: every service instance keeps its own
    copy, so replicas may serve data up to one TTL stale.
    """

    def __init__(
        self,
        default_ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time
    ):
        self.default_ttl = CacheConfig.DATA_SERVICE_TTL if default_ttl is None else default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def set(self, key: str, data: Any, ttl: Optional[float] = None) -> None:
        """Store a value, replacing whatever was there"""
        self._entries[key] = CacheEntry(
            data=data,
            timestamp=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl
        )
        logger.debug(f"Cache SET: {key}")

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired"""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache MISS: {key}")
            return None

        if not entry.is_fresh(self._clock()):
            del self._entries[key]
            logger.debug(f"Cache EXPIRED: {key}")
            return None

        logger.debug(f"Cache HIT: {key}")
        return entry.data

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
