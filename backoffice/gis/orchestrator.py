import logging
from typing import Any, Dict, Optional

from fastapi import Request

from ..cache.decorators import deduplicated
from ..cache.dedup import RequestDeduplicator
from .lifecycle import PropertyLifecycleService
from .models import GISSearchCriteria, ScrapedProperty

logger = logging.getLogger(__name__)

class GISScrapeOrchestrator:
    """
    Scrape-and-store for the GIS endpoint

    Identical concurrent searches (same user and acreage range) share one
    scrape and receive the same response. Rows belong to the searching user,
    so searches of different users never share a run.
    """

    def __init__(self, deduplicator: Optional[RequestDeduplicator] = None):
        self.deduplicator = deduplicator if deduplicator is not None else RequestDeduplicator()
        self.run = deduplicated(self.deduplicator, key_func=self.request_key)(self._run)

    @staticmethod
    def request_key(lifecycle: PropertyLifecycleService, scraper, criteria: GISSearchCriteria) -> str:
        return (
            f"gis-scrape:{lifecycle.tenant.organization_id}:{lifecycle.tenant.user_id}:"
            f"{criteria.min_acreage}:{criteria.max_acreage}"
        )

    async def _run(self, lifecycle: PropertyLifecycleService, scraper, criteria: GISSearchCriteria) -> Dict[str, Any]:
        # Entitlement is checked before the source is contacted
        lifecycle.require_access()

        properties = await scraper.scrape(criteria)
        session_id, rows = lifecycle.create_scraped_properties(properties)

        return {
            "success": True,
            "properties": [ScrapedProperty.model_validate(row).model_dump(mode="json") for row in rows],
            "count": len(rows),
            "criteria": {"min_acreage": criteria.min_acreage, "max_acreage": criteria.max_acreage},
            "search_session_id": session_id,
        }

def get_scrape_orchestrator(request: Request) -> GISScrapeOrchestrator:
    return request.app.state.gis_orchestrator
