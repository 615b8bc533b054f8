"""
GIS property pipeline: county scraper, entitlement checks and the
scraped/saved property lifecycle
"""

from .config import GISScraperConfig
from .exceptions import (
    GISError, GISAccessDeniedError, PropertyNotFoundError, PropertyStateError, GISPersistenceError
)
from .lifecycle import PropertyLifecycleService, purge_expired_scraped_properties
from .orchestrator import GISScrapeOrchestrator
from .permissions import GISPermissionChecker
from .scraper import LawrenceCountyGISScraper

__all__ = [
    'GISScraperConfig',
    'GISError',
    'GISAccessDeniedError',
    'PropertyNotFoundError',
    'PropertyStateError',
    'GISPersistenceError',
    'PropertyLifecycleService',
    'purge_expired_scraped_properties',
    'GISScrapeOrchestrator',
    'GISPermissionChecker',
    'LawrenceCountyGISScraper'
]
