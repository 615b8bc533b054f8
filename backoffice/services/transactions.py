from sqlalchemy.orm import Session
from typing import Any, Dict, Iterable, List, Mapping, Optional
from decimal import Decimal
from datetime import datetime
import logging

from ..database.models import Transaction
from ..models.transaction import TransactionCreate, TransactionUpdate
from .base import RecordNotFoundError, apply_update

logger = logging.getLogger(__name__)

class TransactionNotFoundError(RecordNotFoundError):
    pass

def summarize_transactions(rows: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """Income, expense and net totals of serialized transactions"""
    income = Decimal("0")
    expenses = Decimal("0")
    for row in rows:
        amount = Decimal(str(row["amount"]))
        if row["type"] == "income":
            income += amount
        elif row["type"] == "expense":
            expenses += amount

    return {
        "total_income": float(income),
        "total_expenses": float(expenses),
        "net_balance": float(income - expenses),
    }

class TransactionService:
    def __init__(self, db: Session, organization_id: str):
        self.db = db
        self.organization_id = organization_id

    def list_transactions(self) -> List[Transaction]:
        return self.db.query(Transaction).filter(
            Transaction.organization_id == self.organization_id
        ).order_by(Transaction.timestamp.desc()).all()

    def create_transaction(self, data: TransactionCreate, uploaded_by: Optional[str] = None) -> Transaction:
        transaction = Transaction(
            organization_id=self.organization_id,
            type=data.type.value,
            category=data.category,
            description=data.description,
            amount=data.amount,
            source=data.source.value,
            timestamp=data.timestamp or datetime.utcnow(),
            uploaded_by=uploaded_by,
            customer_id=data.customer_id
        )
        self.db.add(transaction)
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Recorded {transaction.type} transaction {transaction.id}")
        return transaction

    def get_transaction(self, transaction_id: str) -> Transaction:
        transaction = self.db.query(Transaction).filter(
            Transaction.id == transaction_id,
            Transaction.organization_id == self.organization_id
        ).first()
        if not transaction:
            raise TransactionNotFoundError("Transaction not found")
        return transaction

    def update_transaction(self, transaction_id: str, data: TransactionUpdate) -> Transaction:
        transaction = apply_update(self.get_transaction(transaction_id), data)
        self.db.commit()
        self.db.refresh(transaction)
        logger.info(f"Updated transaction {transaction_id}")
        return transaction

    def delete_transaction(self, transaction_id: str) -> None:
        self.db.delete(self.get_transaction(transaction_id))
        self.db.commit()
        logger.info(f"Deleted transaction {transaction_id}")
