from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from enum import Enum

class InteractionType(str, Enum):
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    SITE_VISIT = "site visit"
    OTHER = "other"

class CustomerCreate(BaseModel):
    full_name: str
    business: Optional[str] = None
    email: str = ""
    phone: str = ""
    status: str = "prospect"

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if not v.strip():
            raise ValueError('Customer name is required')
        return v.strip()

class Customer(BaseModel):
    id: str
    full_name: str
    business: Optional[str] = None
    email: Optional[str] = ""
    phone: Optional[str] = ""
    status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class InteractionCreate(BaseModel):
    customer_id: str
    type: InteractionType = InteractionType.OTHER
    title: str
    notes: str = ""
    outcome: str = ""
    follow_up_required: bool = False

class Interaction(BaseModel):
    id: str
    customer_id: str
    type: str
    title: str
    notes: Optional[str] = ""
    outcome: Optional[str] = ""
    follow_up_required: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class CustomerUpdate(BaseModel):
    full_name: Optional[str] = None
    business: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[str] = None

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if v is None or not v.strip():
            raise ValueError('Customer name is required')
        return v.strip()

class InteractionUpdate(BaseModel):
    type: Optional[InteractionType] = None
    title: Optional[str] = None
    notes: Optional[str] = None
    outcome: Optional[str] = None
    follow_up_required: Optional[bool] = None

    model_config = {"use_enum_values": True}
