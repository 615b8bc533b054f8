from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List
import logging

from ..auth.utils import Tenant, get_current_tenant
from ..database.connection import get_db
from ..models.crm import (
    Customer, CustomerCreate, CustomerUpdate, Interaction, InteractionCreate, InteractionUpdate
)
from ..services.base import RecordNotFoundError
from ..services.crm import CRMService, CustomerNotFoundError
from ..services.registry import DataServiceRegistry, get_data_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/crm", tags=["crm"])

@router.get("/customers")
async def list_customers(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> List[Dict[str, Any]]:
    return await data_services.crm(tenant.organization_id).get_customers(force_refresh)

@router.get("/interactions")
async def list_interactions(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> List[Dict[str, Any]]:
    return await data_services.crm(tenant.organization_id).get_interactions(force_refresh)

@router.get("/data")
async def get_crm_data(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> Dict[str, Any]:
    """Customers and interactions in one response"""
    return await data_services.crm(tenant.organization_id).get_crm_data(force_refresh)

@router.post("/customers", response_model=Customer, status_code=status.HTTP_201_CREATED)
async def create_customer(
    customer_data: CustomerCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    customer = CRMService(db, tenant.organization_id).create_customer(customer_data)
    data_services.crm(tenant.organization_id).invalidate_customers()
    return customer

@router.post("/interactions", response_model=Interaction, status_code=status.HTTP_201_CREATED)
async def create_interaction(
    interaction_data: InteractionCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        interaction = CRMService(db, tenant.organization_id).create_interaction(interaction_data)
    except CustomerNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    data_services.crm(tenant.organization_id).invalidate_interactions()
    return interaction

@router.put("/customers/{customer_id}", response_model=Customer)
async def update_customer(
    customer_id: str,
    customer_data: CustomerUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        customer = CRMService(db, tenant.organization_id).update_customer(customer_id, customer_data)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    data_services.crm(tenant.organization_id).invalidate_customers()
    return customer

@router.delete("/customers/{customer_id}")
async def delete_customer(
    customer_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    """Delete a customer and its interactions"""
    try:
        CRMService(db, tenant.organization_id).delete_customer(customer_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    service = data_services.crm(tenant.organization_id)
    service.invalidate_customers()
    service.invalidate_interactions()
    return {"success": True, "message": "Customer deleted"}

@router.put("/interactions/{interaction_id}", response_model=Interaction)
async def update_interaction(
    interaction_id: str,
    interaction_data: InteractionUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        interaction = CRMService(db, tenant.organization_id).update_interaction(interaction_id, interaction_data)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    data_services.crm(tenant.organization_id).invalidate_interactions()
    return interaction

@router.delete("/interactions/{interaction_id}")
async def delete_interaction(
    interaction_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        CRMService(db, tenant.organization_id).delete_interaction(interaction_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    data_services.crm(tenant.organization_id).invalidate_interactions()
    return {"success": True, "message": "Interaction deleted"}
