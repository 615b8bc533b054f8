from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from ..auth.utils import Tenant, get_current_tenant
from ..database.connection import get_db
from ..models.inventory import InventoryAlert, InventoryItem, InventoryItemCreate, InventoryItemUpdate
from ..services.base import RecordNotFoundError
from ..services.inventory import InventoryService

router = APIRouter(prefix="/api/inventory", tags=["inventory"])

@router.get("", response_model=List[InventoryItem])
async def list_inventory(
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return InventoryService(db, tenant.organization_id).list_items()

@router.get("/alerts", response_model=List[InventoryAlert])
async def get_inventory_alerts(
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Out-of-stock and low-stock items, most urgent first"""
    return InventoryService(db, tenant.organization_id).get_alerts()

@router.post("", response_model=InventoryItem, status_code=status.HTTP_201_CREATED)
async def create_inventory_item(
    item_data: InventoryItemCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    return InventoryService(db, tenant.organization_id, tenant.user_id).create_item(item_data)

@router.post("/bulk-import")
async def bulk_import_inventory(
    items: List[InventoryItemCreate],
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    """Import a batch of items; failures are counted and reported per item"""
    result = InventoryService(db, tenant.organization_id, tenant.user_id).bulk_import(items)
    return result.model_dump(by_alias=True)

@router.put("/{item_id}", response_model=InventoryItem)
async def update_inventory_item(
    item_id: str,
    item_data: InventoryItemUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    try:
        return InventoryService(db, tenant.organization_id).update_item(item_id, item_data)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.delete("/{item_id}")
async def delete_inventory_item(
    item_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db)
):
    try:
        InventoryService(db, tenant.organization_id).delete_item(item_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"success": True, "message": "Inventory item deleted"}
