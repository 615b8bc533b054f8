"""
Per-organization registry of cached data services
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from fastapi import Request
from sqlalchemy.orm import Session

from ..cache.dedup import RequestDeduplicator
from ..cache.ttl_cache import TTLCache
from ..models.crm import Customer, Interaction
from ..models.lead import Lead, LeadStats
from ..models.transaction import Transaction
from .crm import CRMService
from .data_service import CachedDataService, CRMDataService, LeadDataService, TransactionDataService
from .leads import LeadService
from .transactions import TransactionService

logger = logging.getLogger(__name__)

class DataServiceRegistry:
    """Creates one service per (kind, organization) on first use.

    Every service gets its own TTLCache and RequestDeduplicator, and its
    fetchers open a short-lived session from `session_factory`.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        ttl: Optional[float] = None,
        clock: Callable[[], float] = time.time
    ):
        self.session_factory = session_factory
        self.ttl = ttl
        self.clock = clock
        self._services: Dict[Tuple[str, str], CachedDataService] = {}

    def _fetcher(self, query: Callable[[Session], Any]):
        async def fetch():
            db = self.session_factory()
            try:
                return query(db)
            finally:
                db.close()
        return fetch

    def _components(self) -> Dict[str, Any]:
        return {
            "cache": TTLCache(default_ttl=self.ttl, clock=self.clock),
            "deduplicator": RequestDeduplicator(),
        }

    def _get(self, kind: str, organization_id: str, build: Callable[[], CachedDataService]):
        key = (kind, organization_id)
        service = self._services.get(key)
        if service is None:
            service = build()
            self._services[key] = service
            logger.debug(f"Created {kind} data service for organization {organization_id}")
        return service

    def crm(self, organization_id: str) -> CRMDataService:
        def build():
            return CRMDataService(
                fetch_customers=self._fetcher(lambda db: [
                    Customer.model_validate(row).model_dump(mode="json")
                    for row in CRMService(db, organization_id).list_customers()
                ]),
                fetch_interactions=self._fetcher(lambda db: [
                    Interaction.model_validate(row).model_dump(mode="json")
                    for row in CRMService(db, organization_id).list_interactions()
                ]),
                **self._components()
            )
        return self._get("crm", organization_id, build)

    def leads(self, organization_id: str) -> LeadDataService:
        def build():
            return LeadDataService(
                fetch_leads=self._fetcher(lambda db: [
                    Lead.model_validate(row).model_dump(mode="json")
                    for row in LeadService(db, organization_id).list_leads()
                ]),
                fetch_stats=self._fetcher(
                    lambda db: LeadStats(**LeadService(db, organization_id).get_stats()).model_dump()
                ),
                **self._components()
            )
        return self._get("leads", organization_id, build)

    def transactions(self, organization_id: str) -> TransactionDataService:
        def build():
            return TransactionDataService(
                fetch_transactions=self._fetcher(lambda db: [
                    Transaction.model_validate(row).model_dump(mode="json")
                    for row in TransactionService(db, organization_id).list_transactions()
                ]),
                **self._components()
            )
        return self._get("transactions", organization_id, build)

    def clear(self) -> None:
        self._services.clear()

def get_data_services(request: Request) -> DataServiceRegistry:
    """FastAPI dependency returning the application's registry"""
    return request.app.state.data_services
