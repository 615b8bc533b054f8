from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging

from ..database.models import Customer, Lead
from ..models.lead import LeadCreate, LeadUpdate
from .base import RecordNotFoundError, apply_update

logger = logging.getLogger(__name__)

# Customer status a converted lead starts with
LEAD_TO_CUSTOMER_STATUS = {
    "new": "lead",
    "contacted": "contacted",
    "qualified": "qualified",
    "proposal": "proposal",
    "negotiation": "proposal",
    "closed_won": "closed",
    "closed_lost": "lead",
    "follow_up": "contacted",
}

class LeadNotFoundError(RecordNotFoundError):
    pass

class LeadAlreadyConvertedError(Exception):
    pass

class LeadService:
    def __init__(self, db: Session, organization_id: str):
        self.db = db
        self.organization_id = organization_id

    def _query(self):
        return self.db.query(Lead).filter(Lead.organization_id == self.organization_id)

    def list_leads(self) -> List[Lead]:
        return self._query().order_by(Lead.created_at.desc()).all()

    def get_stats(self) -> Dict[str, Any]:
        """Aggregate lead counts; conversion rate is closed-won over total"""
        total = self._query().count()
        if total == 0:
            return {
                "total_leads": 0,
                "qualified_leads": 0,
                "manual_leads": 0,
                "ai_generated_leads": 0,
                "average_score": 0.0,
                "conversion_rate": 0.0,
            }

        average_score = self.db.query(func.avg(Lead.score)).filter(
            Lead.organization_id == self.organization_id
        ).scalar() or 0
        closed_won = self._query().filter(Lead.status == "closed_won").count()

        return {
            "total_leads": total,
            "qualified_leads": self._query().filter(Lead.is_qualified.is_(True)).count(),
            "manual_leads": self._query().filter(Lead.source == "manual").count(),
            "ai_generated_leads": self._query().filter(Lead.source == "ai_agent").count(),
            "average_score": round(float(average_score), 2),
            "conversion_rate": closed_won / total,
        }

    def create_lead(self, data: LeadCreate, user_id: Optional[str] = None) -> Lead:
        values = data.model_dump()
        values["source"] = data.source.value
        lead = Lead(organization_id=self.organization_id, user_id=user_id, **values)
        self.db.add(lead)
        self.db.commit()
        self.db.refresh(lead)
        logger.info(f"Created lead {lead.id} for organization {self.organization_id}")
        return lead

    def get_lead(self, lead_id: str) -> Lead:
        lead = self._query().filter(Lead.id == lead_id).first()
        if not lead:
            raise LeadNotFoundError("Lead not found")
        return lead

    def update_lead(self, lead_id: str, data: LeadUpdate) -> Lead:
        lead = apply_update(self.get_lead(lead_id), data)
        self.db.commit()
        self.db.refresh(lead)
        return lead

    def delete_lead(self, lead_id: str) -> None:
        self.db.delete(self.get_lead(lead_id))
        self.db.commit()
        logger.info(f"Deleted lead {lead_id}")

    def convert_to_customer(self, lead_id: str, now: Optional[datetime] = None) -> str:
        """
        Create a CRM customer from a lead and mark the lead as converted

        The customer insert and the lead update are separate commits; a
        failed lead update is logged and the customer is kept.

        Returns:
            The new customer id
        """
        lead = self.get_lead(lead_id)
        if lead.status == "converted":
            raise LeadAlreadyConvertedError("Lead has already been converted")

        customer = Customer(
            organization_id=self.organization_id,
            full_name=f"{lead.first_name} {lead.last_name or ''}".strip(),
            business=lead.company or "",
            email=lead.email or "",
            phone=lead.phone or "",
            status=LEAD_TO_CUSTOMER_STATUS.get(lead.status, "lead")
        )
        self.db.add(customer)
        self.db.commit()
        customer_id = customer.id

        marker = f"[CONVERTED TO CUSTOMER: {(now or datetime.utcnow()).isoformat(timespec='seconds')}]"
        lead.status = "converted"
        lead.notes = f"{lead.notes}\n\n{marker}" if lead.notes else marker
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Customer {customer_id} created but lead {lead_id} not marked converted: {e}")

        logger.info(f"Converted lead {lead_id} to customer {customer_id}")
        return customer_id
