from sqlalchemy.orm import Session
from typing import Optional
import logging
import sys

from ..cache.manager import CacheManager
from .models import GISPermission

logger = logging.getLogger(__name__)

def _forget_cached_permissions(cache_manager: Optional[CacheManager], organization_id: str) -> None:
    if cache_manager:
        cache_manager.invalidate_gis_permissions(organization_id)

def grant_feature(
    db: Session,
    organization_id: str,
    feature: str = "gis_scraper",
    notes: Optional[str] = None,
    cache_manager: Optional[CacheManager] = None
) -> GISPermission:
    """Enable a GIS feature for an organization (creates or re-enables the row)"""
    permission = db.query(GISPermission).filter(
        GISPermission.organization_id == organization_id,
        GISPermission.feature_name == feature
    ).first()

    if permission:
        permission.is_enabled = True
        if notes is not None:
            permission.notes = notes
    else:
        permission = GISPermission(
            organization_id=organization_id,
            feature_name=feature,
            is_enabled=True,
            notes=notes
        )
        db.add(permission)

    db.commit()
    db.refresh(permission)
    _forget_cached_permissions(cache_manager, organization_id)
    logger.info(f"Granted {feature} to organization {organization_id}")
    return permission

def revoke_feature(
    db: Session,
    organization_id: str,
    feature: str = "gis_scraper",
    cache_manager: Optional[CacheManager] = None
) -> bool:
    """Disable a GIS feature for an organization"""
    permission = db.query(GISPermission).filter(
        GISPermission.organization_id == organization_id,
        GISPermission.feature_name == feature
    ).first()

    if not permission:
        return False

    permission.is_enabled = False
    db.commit()
    _forget_cached_permissions(cache_manager, organization_id)
    logger.info(f"Revoked {feature} from organization {organization_id}")
    return True

def main(argv=None) -> int:
    """python -m backoffice.database.seeder grant|revoke <organization_id> [feature]"""
    from .connection import SessionLocal, get_redis

    args = sys.argv[1:] if argv is None else argv
    if len(args) not in (2, 3) or args[0] not in ("grant", "revoke"):
        print("usage: python -m backoffice.database.seeder grant|revoke <organization_id> [feature]")
        return 2

    action, organization_id = args[0], args[1]
    feature = args[2] if len(args) == 3 else "gis_scraper"
    cache_manager = CacheManager(get_redis())

    db = SessionLocal()
    try:
        if action == "grant":
            grant_feature(db, organization_id, feature, cache_manager=cache_manager)
        elif not revoke_feature(db, organization_id, feature, cache_manager=cache_manager):
            print(f"No {feature} permission found for organization {organization_id}")
            return 1
    finally:
        db.close()

    print(f"{action}: {feature} for organization {organization_id}")
    return 0

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
