from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

class GISSearchCriteria(BaseModel):
    min_acreage: float
    max_acreage: float
    township: Optional[str] = None

class NewScrapedProperty(BaseModel):
    """A property parsed from the GIS source, not yet persisted"""
    owner_name: str
    address: str
    city: str
    zip_code: Optional[str] = None
    acreage: float
    assessed_value: Optional[float] = None
    property_type: Optional[str] = None
    parcel_id: Optional[str] = None
    search_criteria: Optional[GISSearchCriteria] = None

    @field_validator('owner_name', 'address', 'city')
    @classmethod
    def strip_text(cls, v):
        return v.strip()

class ScrapedProperty(BaseModel):
    id: str
    user_id: str
    organization_id: str
    search_session_id: str
    owner_name: str
    address: str
    city: str
    zip_code: Optional[str] = None
    acreage: float
    assessed_value: Optional[float] = None
    property_type: Optional[str] = None
    parcel_id: Optional[str] = None
    search_criteria: Optional[dict] = None
    scraped_at: datetime
    is_saved: bool
    saved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

class SavedProperty(BaseModel):
    id: str
    user_id: str
    organization_id: str
    scraped_property_id: Optional[str] = None
    owner_name: str
    address: str
    city: str
    zip_code: Optional[str] = None
    acreage: float
    assessed_value: Optional[float] = None
    property_type: Optional[str] = None
    parcel_id: Optional[str] = None
    search_criteria: Optional[dict] = None
    original_scraped_at: Optional[datetime] = None
    exported_to_leads: bool = False
    exported_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

# Request bodies. Ids are optional here so a missing id is answered with
# a 400 and a message instead of a validation 422.

class ScrapeRequest(BaseModel):
    min_acreage: Optional[float] = None
    max_acreage: Optional[float] = None

class SavePropertyRequest(BaseModel):
    scraped_property_id: Optional[str] = Field(None, alias="scrapedPropertyId")

    model_config = {"populate_by_name": True}

class SavedPropertyRequest(BaseModel):
    saved_property_id: Optional[str] = Field(None, alias="savedPropertyId")

    model_config = {"populate_by_name": True}
