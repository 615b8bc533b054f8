from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class InventoryItemCreate(BaseModel):
    name: str
    category: str
    description: Optional[str] = None
    sku: Optional[str] = None
    subcategory: Optional[str] = None
    location: Optional[str] = None
    current_quantity: int = 0
    minimum_threshold: int = 0
    maximum_capacity: Optional[int] = None
    unit_of_measurement: str = "units"
    unit_cost: float = 0.0
    unit_price: float = 0.0
    supplier: Optional[str] = None
    supplier_contact: Optional[str] = None
    notes: Optional[str] = None
    auto_reorder_enabled: bool = False

class InventoryItem(BaseModel):
    id: str
    name: str
    category: str
    description: Optional[str] = None
    sku: Optional[str] = None
    current_quantity: int = 0
    minimum_threshold: int = 0
    unit_of_measurement: str = "units"
    unit_cost: float = 0.0
    unit_price: float = 0.0
    status: str = "active"
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class BulkImportResult(BaseModel):
    """Outcome of a best-effort batch import"""
    success: bool = True
    success_count: int = Field(0, serialization_alias="successCount")
    error_count: int = Field(0, serialization_alias="errorCount")
    errors: List[str] = []

class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None
    subcategory: Optional[str] = None
    location: Optional[str] = None
    current_quantity: Optional[int] = None
    minimum_threshold: Optional[int] = None
    maximum_capacity: Optional[int] = None
    unit_of_measurement: Optional[str] = None
    unit_cost: Optional[float] = None
    unit_price: Optional[float] = None
    supplier: Optional[str] = None
    supplier_contact: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    auto_reorder_enabled: Optional[bool] = None

class InventoryAlert(BaseModel):
    item_id: str
    item_name: str
    alert_type: str  # out_of_stock, low_stock
    priority: str
    current_quantity: int
    minimum_threshold: int
