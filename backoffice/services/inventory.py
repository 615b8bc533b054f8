from sqlalchemy.orm import Session
from typing import Iterable, List, Optional
import logging

from ..database.models import InventoryItem
from ..models.inventory import InventoryAlert, InventoryItemCreate, InventoryItemUpdate, BulkImportResult
from .base import RecordNotFoundError, apply_update

logger = logging.getLogger(__name__)

class InventoryItemNotFoundError(RecordNotFoundError):
    pass

class InventoryService:
    def __init__(self, db: Session, organization_id: str, user_id: Optional[str] = None):
        self.db = db
        self.organization_id = organization_id
        self.user_id = user_id

    def _query(self):
        return self.db.query(InventoryItem).filter(InventoryItem.organization_id == self.organization_id)

    def list_items(self) -> List[InventoryItem]:
        return self._query().order_by(InventoryItem.name).all()

    def get_item(self, item_id: str) -> InventoryItem:
        item = self._query().filter(InventoryItem.id == item_id).first()
        if not item:
            raise InventoryItemNotFoundError("Inventory item not found")
        return item

    def create_item(self, data: InventoryItemCreate) -> InventoryItem:
        item = InventoryItem(
            organization_id=self.organization_id,
            user_id=self.user_id,
            **data.model_dump()
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def update_item(self, item_id: str, data: InventoryItemUpdate) -> InventoryItem:
        item = apply_update(self.get_item(item_id), data)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, item_id: str) -> None:
        self.db.delete(self.get_item(item_id))
        self.db.commit()
        logger.info(f"Deleted inventory item {item_id}")

    def get_alerts(self) -> List[InventoryAlert]:
        """Stock alerts for active items: out of stock first, then at or below the minimum threshold"""
        alerts = []
        for item in self._query().filter(InventoryItem.status == "active").all():
            quantity = item.current_quantity or 0
            threshold = item.minimum_threshold or 0
            if quantity <= 0:
                alert_type, priority = "out_of_stock", "high"
            elif quantity <= threshold:
                alert_type, priority = "low_stock", "medium"
            else:
                continue
            alerts.append(InventoryAlert(
                item_id=item.id,
                item_name=item.name,
                alert_type=alert_type,
                priority=priority,
                current_quantity=quantity,
                minimum_threshold=threshold
            ))

        alerts.sort(key=lambda alert: (alert.priority != "high", alert.item_name))
        return alerts

    def bulk_import(self, items: Iterable[InventoryItemCreate]) -> BulkImportResult:
        """
        Import items one by one

        A failing item is rolled back on its own and reported; the items
        before and after it are still imported.
        """
        result = BulkImportResult()

        for data in items:
            try:
                self.create_item(data)
                result.success_count += 1
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to import inventory item {data.name!r}: {e}")
                result.error_count += 1
                result.errors.append(f'Failed to import "{data.name}"')

        logger.info(
            f"Bulk import for organization {self.organization_id}: "
            f"{result.success_count} imported, {result.error_count} failed"
        )
        return result
