"""
Scraped and saved property lifecycle

Scraped rows are temporary search results: they are created per search
session and purged once older than the retention window unless saved.
Saving copies a scraped row into saved_properties; exporting turns a
saved row into a CRM customer.
"""
import asyncio
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple
import logging

from sqlalchemy import true
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from ..auth.utils import Tenant
from ..database.models import Customer, SavedProperty, ScrapedProperty, generate_uuid
from .config import GISScraperConfig
from .exceptions import GISPersistenceError, PropertyNotFoundError, PropertyStateError
from .models import NewScrapedProperty
from .permissions import GISPermissionChecker

logger = logging.getLogger(__name__)

DESCRIPTIVE_FIELDS = (
    "owner_name", "address", "city", "zip_code", "acreage", "assessed_value",
    "property_type", "parcel_id", "search_criteria",
)

def dedupe_key(address: str, city: str, owner_name: str) -> str:
    return f"{address}-{city}-{owner_name}".lower()

def purge_expired_scraped_properties(
    db: Session,
    now: Optional[datetime] = None,
    retention_days: int = GISScraperConfig.RETENTION_DAYS
) -> int:
    """Delete unsaved scraped rows older than the retention window, across all tenants"""
    cutoff = (now or datetime.utcnow()) - timedelta(days=retention_days)
    try:
        deleted = db.query(ScrapedProperty).filter(
            ScrapedProperty.is_saved.is_(False),
            ScrapedProperty.scraped_at < cutoff
        ).delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Scheduled cleanup of scraped properties failed: {e}")
        raise GISPersistenceError()

    logger.info(f"Purged {deleted} expired scraped properties")
    return deleted

class PropertyLifecycleService:
    def __init__(
        self,
        db: Session,
        tenant: Tenant,
        permissions: GISPermissionChecker,
        config=GISScraperConfig
    ):
        self.db = db
        self.tenant = tenant
        self.permissions = permissions
        self.config = config

    def require_access(self) -> None:
        self.permissions.require(self.tenant.organization_id, self.config.FEATURE_NAME)

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise GISPersistenceError()

    def _scraped_query(self):
        return self.db.query(ScrapedProperty).filter(
            ScrapedProperty.organization_id == self.tenant.organization_id
        )

    def _saved_query(self):
        return self.db.query(SavedProperty).filter(
            SavedProperty.organization_id == self.tenant.organization_id
        )

    def create_scraped_properties(
        self,
        properties: Sequence[NewScrapedProperty],
        search_session_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Tuple[str, List[ScrapedProperty]]:
        """
        Persist one scrape's results under a search session

        Properties already present as recent unsaved results of the same
        organization (same address, city and owner) are skipped.

        Returns:
            The search session id and the inserted rows
        """
        self.require_access()

        session_id = search_session_id or generate_uuid()
        now = now or datetime.utcnow()
        if not properties:
            return session_id, []

        recent_cutoff = now - timedelta(days=self.config.RETENTION_DAYS)
        existing = self._scraped_query().with_entities(
            ScrapedProperty.address, ScrapedProperty.city, ScrapedProperty.owner_name
        ).filter(
            ScrapedProperty.is_saved.is_(False),
            ScrapedProperty.created_at >= recent_cutoff
        ).all()
        seen = {dedupe_key(*row) for row in existing}

        rows = []
        for prop in properties:
            if dedupe_key(prop.address, prop.city, prop.owner_name) in seen:
                continue
            values = prop.model_dump(exclude={"search_criteria"})
            criteria = prop.search_criteria.model_dump(exclude_none=True) if prop.search_criteria else None
            rows.append(ScrapedProperty(
                user_id=self.tenant.user_id,
                organization_id=self.tenant.organization_id,
                search_session_id=session_id,
                search_criteria=criteria,
                scraped_at=now,
                created_at=now,
                is_saved=False,
                **values
            ))

        skipped = len(properties) - len(rows)
        if skipped:
            logger.info(f"Skipped {skipped} properties already in recent results")

        self.db.add_all(rows)
        self._commit("store scraped properties")
        logger.info(f"Stored {len(rows)} scraped properties in session {session_id}")
        return session_id, rows

    def get_scraped_properties(self, search_session_id: Optional[str] = None) -> List[ScrapedProperty]:
        self.require_access()
        query = self._scraped_query()
        if search_session_id:
            query = query.filter(ScrapedProperty.search_session_id == search_session_id)
        return query.order_by(ScrapedProperty.scraped_at.desc()).all()

    def get_saved_properties(self) -> List[SavedProperty]:
        self.require_access()
        return self._saved_query().order_by(SavedProperty.created_at.desc()).all()

    def save_property(self, scraped_property_id: str, now: Optional[datetime] = None) -> SavedProperty:
        """
        Copy a scraped row into saved_properties and flag it as saved

        The insert and the flag update are separate commits; a failed flag
        update is logged and the saved copy is kept.
        """
        self.require_access()

        scraped = self._scraped_query().filter(ScrapedProperty.id == scraped_property_id).first()
        if not scraped:
            raise PropertyNotFoundError("Scraped property not found")
        if scraped.is_saved:
            raise PropertyStateError("Property has already been saved")

        now = now or datetime.utcnow()
        saved = SavedProperty(
            user_id=self.tenant.user_id,
            organization_id=self.tenant.organization_id,
            scraped_property_id=scraped.id,
            original_scraped_at=scraped.scraped_at,
            exported_to_leads=False,
            created_at=now,
            **{field: getattr(scraped, field) for field in DESCRIPTIVE_FIELDS}
        )
        self.db.add(saved)
        self._commit("save property")

        scraped.is_saved = True
        scraped.saved_at = now
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Saved property {saved.id} but could not flag scraped row {scraped_property_id}: {e}")

        logger.info(f"Saved scraped property {scraped_property_id} as {saved.id}")
        return saved

    def delete_saved_property(self, saved_property_id: str) -> None:
        self.require_access()

        saved = self._saved_query().filter(SavedProperty.id == saved_property_id).first()
        if not saved:
            raise PropertyNotFoundError("Saved property not found")

        self.db.delete(saved)
        self._commit("delete saved property")
        logger.info(f"Deleted saved property {saved_property_id}")

    def export_saved_property_to_lead(self, saved_property_id: str, now: Optional[datetime] = None) -> str:
        """Create a prospect customer from a saved property; returns the customer id"""
        self.require_access()

        saved = self._saved_query().filter(SavedProperty.id == saved_property_id).first()
        if not saved:
            raise PropertyNotFoundError("Saved property not found")
        if saved.exported_to_leads:
            raise PropertyStateError("Property has already been exported to leads")

        customer = Customer(
            organization_id=self.tenant.organization_id,
            full_name=saved.owner_name,
            email="",
            phone="",
            business=f"{saved.address}, {saved.city}",
            status="prospect"
        )
        self.db.add(customer)
        self._commit("create customer from saved property")
        customer_id = customer.id

        saved.exported_to_leads = True
        saved.exported_at = now or datetime.utcnow()
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Customer {customer_id} created but saved property {saved_property_id} not flagged: {e}")

        logger.info(f"Exported saved property {saved_property_id} to customer {customer_id}")
        return customer_id

    def cleanup(self, force: bool = False, now: Optional[datetime] = None) -> int:
        """
        Delete the tenant's scraped rows

        Normal mode deletes unsaved rows scraped strictly before the
        retention cutoff. Force mode deletes every scraped row of the tenant,
        saved or not. Saved properties are never touched.
        """
        query = self._scraped_query().filter(ScrapedProperty.user_id == self.tenant.user_id)

        if force:
            condition = true()
        else:
            cutoff = (now or datetime.utcnow()) - timedelta(days=self.config.RETENTION_DAYS)
            condition = (ScrapedProperty.is_saved.is_(False)) & (ScrapedProperty.scraped_at < cutoff)

        try:
            deleted = query.filter(condition).delete(synchronize_session=False)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to clean up scraped properties: {e}")
            raise GISPersistenceError()
        self._commit("clean up scraped properties")

        logger.info(f"Cleanup ({'force' if force else 'normal'}) deleted {deleted} scraped properties")
        return deleted

async def run_cleanup_loop(session_factory, interval_hours: float) -> None:
    """Purge expired scraped rows every `interval_hours` until cancelled"""
    interval = interval_hours * 3600
    logger.info(f"Scheduled scraped property cleanup every {interval_hours}h")
    while True:
        await asyncio.sleep(interval)
        db = session_factory()
        try:
            purge_expired_scraped_properties(db)
        except GISPersistenceError:
            logger.warning("Scheduled cleanup failed, retrying at the next interval")
        finally:
            db.close()
