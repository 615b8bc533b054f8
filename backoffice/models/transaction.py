from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"

class TransactionSource(str, Enum):
    MANUAL = "manual"
    AI_AGENT = "ai_agent"
    IMPORT = "import"

class TransactionCreate(BaseModel):
    type: TransactionType
    category: str
    description: str = ""
    amount: Decimal
    source: TransactionSource = TransactionSource.MANUAL
    timestamp: Optional[datetime] = None
    customer_id: Optional[str] = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v < 0:
            raise ValueError('Amount must not be negative')
        return v

class Transaction(BaseModel):
    id: str
    type: str
    category: str
    description: Optional[str] = ""
    # Serialized as a string to keep decimal precision
    amount: str
    source: str
    timestamp: Optional[datetime] = None
    uploaded_by: Optional[str] = None
    customer_id: Optional[str] = None

    model_config = {"from_attributes": True}

    @field_validator('amount', mode='before')
    @classmethod
    def amount_as_string(cls, v):
        return str(v)

class TransactionSummary(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_balance: float = 0.0

class TransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[Decimal] = None
    timestamp: Optional[datetime] = None
    customer_id: Optional[str] = None

    model_config = {"use_enum_values": True}

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        if v is not None and v < 0:
            raise ValueError('Amount must not be negative')
        return v
