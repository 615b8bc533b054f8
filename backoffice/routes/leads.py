from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List

from ..auth.utils import Tenant, get_current_tenant
from ..database.connection import get_db
from ..models.lead import Lead, LeadCreate, LeadUpdate
from ..services.base import RecordNotFoundError
from ..services.leads import LeadAlreadyConvertedError, LeadService
from ..services.registry import DataServiceRegistry, get_data_services

router = APIRouter(prefix="/api/leads", tags=["leads"])

def invalidate_lead_views(data_services: DataServiceRegistry, organization_id: str) -> None:
    service = data_services.leads(organization_id)
    service.invalidate_leads()
    service.invalidate_stats()

@router.get("")
async def list_leads(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> List[Dict[str, Any]]:
    return await data_services.leads(tenant.organization_id).get_leads(force_refresh)

@router.get("/stats")
async def get_lead_stats(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> Dict[str, Any]:
    return await data_services.leads(tenant.organization_id).get_stats(force_refresh)

@router.get("/overview")
async def get_leads_overview(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> Dict[str, Any]:
    """Leads together with their stats"""
    return await data_services.leads(tenant.organization_id).get_leads_and_stats(force_refresh)

@router.post("", response_model=Lead, status_code=status.HTTP_201_CREATED)
async def create_lead(
    lead_data: LeadCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    lead = LeadService(db, tenant.organization_id).create_lead(lead_data, user_id=tenant.user_id)
    invalidate_lead_views(data_services, tenant.organization_id)
    return lead

@router.put("/{lead_id}", response_model=Lead)
async def update_lead(
    lead_id: str,
    lead_data: LeadUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        lead = LeadService(db, tenant.organization_id).update_lead(lead_id, lead_data)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    invalidate_lead_views(data_services, tenant.organization_id)
    return lead

@router.delete("/{lead_id}")
async def delete_lead(
    lead_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        LeadService(db, tenant.organization_id).delete_lead(lead_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    invalidate_lead_views(data_services, tenant.organization_id)
    return {"success": True, "message": "Lead deleted"}

@router.post("/{lead_id}/convert")
async def convert_lead_to_customer(
    lead_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    """Turn a lead into a CRM customer; refreshes both the lead and customer views"""
    try:
        customer_id = LeadService(db, tenant.organization_id).convert_to_customer(lead_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except LeadAlreadyConvertedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    invalidate_lead_views(data_services, tenant.organization_id)
    data_services.crm(tenant.organization_id).invalidate_customers()
    return {"success": True, "customerId": customer_id}
