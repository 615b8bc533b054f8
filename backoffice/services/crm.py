from sqlalchemy.orm import Session
from typing import List
import logging

from ..database.models import Customer, Interaction, Transaction
from ..models.crm import CustomerCreate, CustomerUpdate, InteractionCreate, InteractionUpdate
from .base import RecordNotFoundError, apply_update

logger = logging.getLogger(__name__)

class CustomerNotFoundError(RecordNotFoundError):
    pass

class InteractionNotFoundError(RecordNotFoundError):
    pass

class CRMService:
    """Customer and interaction persistence for one organization"""

    def __init__(self, db: Session, organization_id: str):
        self.db = db
        self.organization_id = organization_id

    def list_customers(self) -> List[Customer]:
        return self.db.query(Customer).filter(
            Customer.organization_id == self.organization_id
        ).order_by(Customer.created_at.desc()).all()

    def list_interactions(self) -> List[Interaction]:
        return self.db.query(Interaction).filter(
            Interaction.organization_id == self.organization_id
        ).order_by(Interaction.created_at.desc()).all()

    def get_customer(self, customer_id: str) -> Customer:
        customer = self.db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.organization_id == self.organization_id
        ).first()
        if not customer:
            raise CustomerNotFoundError("Customer not found")
        return customer

    def get_interaction(self, interaction_id: str) -> Interaction:
        interaction = self.db.query(Interaction).filter(
            Interaction.id == interaction_id,
            Interaction.organization_id == self.organization_id
        ).first()
        if not interaction:
            raise InteractionNotFoundError("Interaction not found")
        return interaction

    def create_customer(self, data: CustomerCreate) -> Customer:
        customer = Customer(organization_id=self.organization_id, **data.model_dump())
        self.db.add(customer)
        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"Created customer {customer.id} for organization {self.organization_id}")
        return customer

    def update_customer(self, customer_id: str, data: CustomerUpdate) -> Customer:
        customer = apply_update(self.get_customer(customer_id), data)
        self.db.commit()
        self.db.refresh(customer)
        logger.info(f"Updated customer {customer_id}")
        return customer

    def delete_customer(self, customer_id: str) -> None:
        """Delete a customer together with its interactions; transactions are kept but unlinked"""
        customer = self.get_customer(customer_id)

        for interaction in customer.interactions:
            self.db.delete(interaction)
        self.db.query(Transaction).filter(Transaction.customer_id == customer.id).update(
            {Transaction.customer_id: None}, synchronize_session=False
        )
        self.db.delete(customer)
        self.db.commit()
        logger.info(f"Deleted customer {customer_id}")

    def create_interaction(self, data: InteractionCreate) -> Interaction:
        customer = self.db.query(Customer).filter(
            Customer.id == data.customer_id,
            Customer.organization_id == self.organization_id
        ).first()
        if not customer:
            raise CustomerNotFoundError("Customer not found")

        values = data.model_dump()
        values["type"] = data.type.value
        interaction = Interaction(organization_id=self.organization_id, **values)
        self.db.add(interaction)
        self.db.commit()
        self.db.refresh(interaction)
        return interaction

    def update_interaction(self, interaction_id: str, data: InteractionUpdate) -> Interaction:
        interaction = apply_update(self.get_interaction(interaction_id), data)
        self.db.commit()
        self.db.refresh(interaction)
        return interaction

    def delete_interaction(self, interaction_id: str) -> None:
        self.db.delete(self.get_interaction(interaction_id))
        self.db.commit()
        logger.info(f"Deleted interaction {interaction_id}")
