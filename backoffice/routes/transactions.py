from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List

from ..auth.utils import Tenant, get_current_tenant
from ..database.connection import get_db
from ..models.transaction import Transaction, TransactionCreate, TransactionSummary, TransactionUpdate
from ..services.base import RecordNotFoundError
from ..services.registry import DataServiceRegistry, get_data_services
from ..services.transactions import TransactionService

router = APIRouter(prefix="/api/transactions", tags=["transactions"])

@router.get("")
async def list_transactions(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> List[Dict[str, Any]]:
    return await data_services.transactions(tenant.organization_id).get_transactions(force_refresh)

@router.get("/summary", response_model=TransactionSummary)
async def get_transaction_summary(
    force_refresh: bool = False,
    tenant: Tenant = Depends(get_current_tenant),
    data_services: DataServiceRegistry = Depends(get_data_services)
) -> Dict[str, float]:
    """Income, expense and net balance totals"""
    return await data_services.transactions(tenant.organization_id).get_summary(force_refresh)

@router.post("", response_model=Transaction, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    transaction = TransactionService(db, tenant.organization_id).create_transaction(
        transaction_data, uploaded_by=tenant.user_id
    )
    data_services.transactions(tenant.organization_id).invalidate_transactions()
    return transaction

@router.put("/{transaction_id}", response_model=Transaction)
async def update_transaction(
    transaction_id: str,
    transaction_data: TransactionUpdate,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        transaction = TransactionService(db, tenant.organization_id).update_transaction(
            transaction_id, transaction_data
        )
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    data_services.transactions(tenant.organization_id).invalidate_transactions()
    return transaction

@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    tenant: Tenant = Depends(get_current_tenant),
    db: Session = Depends(get_db),
    data_services: DataServiceRegistry = Depends(get_data_services)
):
    try:
        TransactionService(db, tenant.organization_id).delete_transaction(transaction_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    data_services.transactions(tenant.organization_id).invalidate_transactions()
    return {"success": True, "message": "Transaction deleted"}
