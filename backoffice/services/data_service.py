"""
Cached domain data services

Each service wraps tenant-bound async fetch functions with a TTLCache and a
RequestDeduplicator. Composite entries are declared in COMPOSITES and the
invalidation graph is derived from that declaration, so dropping a
constituent always drops every composite built from it.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from ..cache.config import CacheConfig
from ..cache.dedup import RequestDeduplicator
from ..cache.ttl_cache import TTLCache
from .transactions import summarize_transactions

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]

class CachedDataService:
    """Base class for the per-tenant cached read services"""

    COMPOSITES: Dict[str, Tuple[str, ...]] = {}

    def __init__(
        self,
        cache: Optional[TTLCache] = None,
        deduplicator: Optional[RequestDeduplicator] = None
    ):
        self.cache = cache if cache is not None else TTLCache()
        self.deduplicator = deduplicator if deduplicator is not None else RequestDeduplicator()
        # Bumped on invalidation; a fetch only caches if its key was not bumped meanwhile
        self._generations: Dict[str, int] = {}

    @classmethod
    def dependents_of(cls, key: str) -> Set[str]:
        """Composite keys that must be dropped together with `key`"""
        return {
            composite for composite, constituents in cls.COMPOSITES.items()
            if key in constituents
        }

    @classmethod
    def cache_keys(cls) -> Set[str]:
        keys = set(cls.COMPOSITES)
        for constituents in cls.COMPOSITES.values():
            keys.update(constituents)
        return keys

    async def _get_or_fetch(self, key: str, fetch: Fetcher, force_refresh: bool = False) -> Any:
        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        async def load() -> Any:
            generation = self._generations.get(key, 0)
            data = await fetch()
            if self._generations.get(key, 0) == generation:
                self.cache.set(key, data)
            else:
                logger.debug(f"Not caching {key}: invalidated during fetch")
            return data

        return await self.deduplicator.deduplicate(key, load)

    def _drop(self, key: str) -> None:
        self.cache.invalidate(key)
        self._generations[key] = self._generations.get(key, 0) + 1

    def invalidate(self, key: str) -> None:
        self._drop(key)
        for dependent in self.dependents_of(key):
            self._drop(dependent)
        logger.debug(f"Invalidated {key} (and dependents)")

    def invalidate_cache(self) -> None:
        self.cache.clear()
        for key in self.cache_keys() | set(self._generations):
            self._generations[key] = self._generations.get(key, 0) + 1

class CRMDataService(CachedDataService):
    COMPOSITES = {
        CacheConfig.CRM_DATA_KEY: (CacheConfig.CUSTOMERS_KEY, CacheConfig.INTERACTIONS_KEY),
    }

    def __init__(
        self,
        fetch_customers: Fetcher,
        fetch_interactions: Fetcher,
        cache: Optional[TTLCache] = None,
        deduplicator: Optional[RequestDeduplicator] = None
    ):
        super().__init__(cache, deduplicator)
        self._fetch_customers = fetch_customers
        self._fetch_interactions = fetch_interactions

    async def get_customers(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return await self._get_or_fetch(CacheConfig.CUSTOMERS_KEY, self._fetch_customers, force_refresh)

    async def get_interactions(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return await self._get_or_fetch(CacheConfig.INTERACTIONS_KEY, self._fetch_interactions, force_refresh)

    async def get_crm_data(self, force_refresh: bool = False) -> Dict[str, Any]:
        async def fetch():
            customers, interactions = await asyncio.gather(
                self.get_customers(force_refresh),
                self.get_interactions(force_refresh)
            )
            return {"customers": customers, "interactions": interactions}

        return await self._get_or_fetch(CacheConfig.CRM_DATA_KEY, fetch, force_refresh)

    def invalidate_customers(self) -> None:
        self.invalidate(CacheConfig.CUSTOMERS_KEY)

    def invalidate_interactions(self) -> None:
        self.invalidate(CacheConfig.INTERACTIONS_KEY)

class LeadDataService(CachedDataService):
    COMPOSITES = {
        CacheConfig.LEADS_AND_STATS_KEY: (CacheConfig.LEADS_KEY, CacheConfig.LEAD_STATS_KEY),
    }

    def __init__(
        self,
        fetch_leads: Fetcher,
        fetch_stats: Fetcher,
        cache: Optional[TTLCache] = None,
        deduplicator: Optional[RequestDeduplicator] = None
    ):
        super().__init__(cache, deduplicator)
        self._fetch_leads = fetch_leads
        self._fetch_stats = fetch_stats

    async def get_leads(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return await self._get_or_fetch(CacheConfig.LEADS_KEY, self._fetch_leads, force_refresh)

    async def get_stats(self, force_refresh: bool = False) -> Dict[str, Any]:
        return await self._get_or_fetch(CacheConfig.LEAD_STATS_KEY, self._fetch_stats, force_refresh)

    async def get_leads_and_stats(self, force_refresh: bool = False) -> Dict[str, Any]:
        async def fetch():
            leads, stats = await asyncio.gather(
                self.get_leads(force_refresh),
                self.get_stats(force_refresh)
            )
            return {"leads": leads, "stats": stats}

        return await self._get_or_fetch(CacheConfig.LEADS_AND_STATS_KEY, fetch, force_refresh)

    def invalidate_leads(self) -> None:
        self.invalidate(CacheConfig.LEADS_KEY)

    def invalidate_stats(self) -> None:
        self.invalidate(CacheConfig.LEAD_STATS_KEY)

class TransactionDataService(CachedDataService):
    COMPOSITES = {
        CacheConfig.TRANSACTION_SUMMARY_KEY: (CacheConfig.TRANSACTIONS_KEY,),
    }

    def __init__(
        self,
        fetch_transactions: Fetcher,
        cache: Optional[TTLCache] = None,
        deduplicator: Optional[RequestDeduplicator] = None
    ):
        super().__init__(cache, deduplicator)
        self._fetch_transactions = fetch_transactions

    async def get_transactions(self, force_refresh: bool = False) -> List[Dict[str, Any]]:
        return await self._get_or_fetch(CacheConfig.TRANSACTIONS_KEY, self._fetch_transactions, force_refresh)

    async def get_summary(self, force_refresh: bool = False) -> Dict[str, float]:
        async def fetch():
            transactions = await self.get_transactions(force_refresh)
            return summarize_transactions(transactions)

        return await self._get_or_fetch(CacheConfig.TRANSACTION_SUMMARY_KEY, fetch, force_refresh)

    def invalidate_transactions(self) -> None:
        self.invalidate(CacheConfig.TRANSACTIONS_KEY)
