from sqlalchemy import (
    Column, String, DateTime, ForeignKey, JSON, Text, Float, Integer, Boolean,
    Numeric, Index, UniqueConstraint
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

Base = declarative_base()

def generate_uuid() -> str:
    return str(uuid.uuid4())

class Organization(Base):
    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    users = relationship("User", back_populates="organization")
    gis_permissions = relationship("GISPermission", back_populates="organization")

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization", back_populates="users")

class GISPermission(Base):
    """Per-organization entitlement for GIS features"""
    __tablename__ = "gis_permissions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    feature_name = Column(String(100), nullable=False, default="gis_scraper")
    is_enabled = Column(Boolean, default=True, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization", back_populates="gis_permissions")

    __table_args__ = (
        UniqueConstraint("organization_id", "feature_name", name="uq_gis_permission_org_feature"),
    )

class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    full_name = Column(String(255), nullable=False)
    business = Column(String(255))
    email = Column(String(255), default="")
    phone = Column(String(50), default="")
    status = Column(String(50), default="prospect")
    created_at = Column(DateTime, default=datetime.utcnow)

    interactions = relationship("Interaction", back_populates="customer")

class Interaction(Base):
    __tablename__ = "interactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)

    type = Column(String(50), default="other")  # call, email, meeting, site visit, other
    title = Column(String(255), nullable=False)
    notes = Column(Text, default="")
    outcome = Column(String(255), default="")
    follow_up_required = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    customer = relationship("Customer", back_populates="interactions")

class Lead(Base):
    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"))

    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), default="")
    email = Column(String(255))
    phone = Column(String(50))
    company = Column(String(255))
    job_title = Column(String(255))
    industry = Column(String(100))

    source = Column(String(50), default="manual")  # manual, ai_agent
    status = Column(String(50), default="new")
    priority = Column(String(50), default="medium")
    score = Column(Integer, default=0)
    is_qualified = Column(Boolean, default=False)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)

    type = Column(String(20), nullable=False)  # income, expense
    category = Column(String(100), nullable=False)
    description = Column(Text, default="")
    amount = Column(Numeric(12, 2), nullable=False)
    source = Column(String(20), default="manual")  # manual, ai_agent, import
    timestamp = Column(DateTime, default=datetime.utcnow)
    uploaded_by = Column(String(36), ForeignKey("users.id"))
    customer_id = Column(String(36), ForeignKey("customers.id"))

class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"))

    name = Column(String(255), nullable=False)
    description = Column(Text)
    sku = Column(String(100))
    category = Column(String(100), nullable=False)
    subcategory = Column(String(100))
    location = Column(String(255))

    current_quantity = Column(Integer, default=0)
    minimum_threshold = Column(Integer, default=0)
    maximum_capacity = Column(Integer)
    unit_of_measurement = Column(String(50), default="units")

    unit_cost = Column(Float, default=0.0)
    unit_price = Column(Float, default=0.0)
    supplier = Column(String(255))
    supplier_contact = Column(String(255))

    status = Column(String(50), default="active")  # active, discontinued, out_of_stock
    notes = Column(Text)
    auto_reorder_enabled = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class ScrapedProperty(Base):
    """Temporary GIS search result, purged after the retention window unless saved"""
    __tablename__ = "scraped_properties"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)
    search_session_id = Column(String(36), nullable=False)

    owner_name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20))
    acreage = Column(Float, nullable=False)
    assessed_value = Column(Float)
    property_type = Column(String(100))
    parcel_id = Column(String(100))
    search_criteria = Column(JSON)

    scraped_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_saved = Column(Boolean, default=False, nullable=False)
    saved_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class SavedProperty(Base):
    """Durable copy of a scraped property; kept until deleted by the user"""
    __tablename__ = "saved_properties"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False)

    # No foreign key: the scraped row may be purged independently
    scraped_property_id = Column(String(36))

    owner_name = Column(String(255), nullable=False)
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    zip_code = Column(String(20))
    acreage = Column(Float, nullable=False)
    assessed_value = Column(Float)
    property_type = Column(String(100))
    parcel_id = Column(String(100))
    search_criteria = Column(JSON)

    original_scraped_at = Column(DateTime)
    exported_to_leads = Column(Boolean, default=False, nullable=False)
    exported_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

# Create indexes for performance
Index('idx_customers_org_created', Customer.organization_id, Customer.created_at)
Index('idx_interactions_org_created', Interaction.organization_id, Interaction.created_at)
Index('idx_leads_org_status', Lead.organization_id, Lead.status)
Index('idx_transactions_org_timestamp', Transaction.organization_id, Transaction.timestamp)
Index('idx_inventory_org_name', InventoryItem.organization_id, InventoryItem.name)

# GIS indexes
Index('idx_scraped_properties_org_session', ScrapedProperty.organization_id, ScrapedProperty.search_session_id)
Index('idx_scraped_properties_cleanup', ScrapedProperty.organization_id, ScrapedProperty.is_saved, ScrapedProperty.scraped_at)
Index('idx_saved_properties_org_created', SavedProperty.organization_id, SavedProperty.created_at)
