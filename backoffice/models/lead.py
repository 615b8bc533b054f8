from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

class LeadSource(str, Enum):
    MANUAL = "manual"
    AI_AGENT = "ai_agent"

class LeadCreate(BaseModel):
    first_name: str
    last_name: str = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    industry: Optional[str] = None
    source: LeadSource = LeadSource.MANUAL
    status: str = "new"
    priority: str = "medium"
    score: int = 0
    is_qualified: bool = False
    notes: Optional[str] = None

class Lead(BaseModel):
    id: str
    first_name: str
    last_name: Optional[str] = ""
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    industry: Optional[str] = None
    source: str
    status: str
    priority: str
    score: int = 0  # 0-100
    is_qualified: bool = False
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class LeadStats(BaseModel):
    total_leads: int = 0
    qualified_leads: int = 0
    manual_leads: int = 0
    ai_generated_leads: int = 0
    average_score: float = 0.0
    conversion_rate: float = 0.0

class LeadUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    job_title: Optional[str] = None
    industry: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    score: Optional[int] = None
    is_qualified: Optional[bool] = None
    notes: Optional[str] = None

