"""
Database module for the back-office API
Handles SQL and Redis connections
"""

from .connection import get_db, get_redis, create_tables, drop_tables, engine, SessionLocal, redis_client
from .models import (
    Base, Organization, User, GISPermission, Customer, Interaction, Lead,
    Transaction, InventoryItem, ScrapedProperty, SavedProperty
)
from .seeder import grant_feature, revoke_feature

__all__ = [
    "get_db", "get_redis", "create_tables", "drop_tables", "engine", "SessionLocal", "redis_client",
    "Base", "Organization", "User", "GISPermission", "Customer", "Interaction", "Lead",
    "Transaction", "InventoryItem", "ScrapedProperty", "SavedProperty",
    "grant_feature", "revoke_feature"
]
