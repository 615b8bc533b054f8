from fastapi import Depends
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
import logging

from ..cache.manager import CacheManager
from ..database.connection import get_db, get_redis
from ..database.models import GISPermission
from .config import GISScraperConfig
from .exceptions import GISAccessDeniedError, GISPersistenceError

logger = logging.getLogger(__name__)

class GISPermissionChecker:
    """Per-organization GIS entitlement lookups, cached in Redis when available"""

    def __init__(self, db: Session, cache_manager: Optional[CacheManager] = None):
        self.db = db
        self.cache_manager = cache_manager

    def has_permission(self, organization_id: str, feature: str = GISScraperConfig.FEATURE_NAME) -> bool:
        if self.cache_manager:
            cached = self.cache_manager.get_cached_gis_permission(organization_id, feature)
            if cached is not None:
                return cached

        try:
            permission = self.db.query(GISPermission).filter(
                GISPermission.organization_id == organization_id,
                GISPermission.feature_name == feature
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Error checking GIS permissions for {organization_id}: {e}")
            raise GISPersistenceError()

        allowed = bool(permission and permission.is_enabled)
        if self.cache_manager:
            self.cache_manager.cache_gis_permission(organization_id, feature, allowed)
        return allowed

    def require(self, organization_id: str, feature: str = GISScraperConfig.FEATURE_NAME) -> None:
        if not self.has_permission(organization_id, feature):
            logger.warning(f"GIS access denied for organization {organization_id} ({feature})")
            raise GISAccessDeniedError()

def get_permission_checker(
    db: Session = Depends(get_db),
    redis_client=Depends(get_redis)
) -> GISPermissionChecker:
    return GISPermissionChecker(db, CacheManager(redis_client))
