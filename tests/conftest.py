import os

# Must be set before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_ENABLED"] = "false"
os.environ["GIS_CLEANUP_INTERVAL_HOURS"] = "0"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient

from backoffice.auth.utils import Tenant
from backoffice.database.connection import SessionLocal, create_tables, drop_tables
from backoffice.database.models import Organization, User
from backoffice.database.seeder import grant_feature
from backoffice.gis.orchestrator import GISScrapeOrchestrator
from backoffice.gis.permissions import GISPermissionChecker
from backoffice.services.registry import DataServiceRegistry
from main import app

@pytest.fixture
def db_session():
    create_tables()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables()

@pytest.fixture
def client(db_session):
    app.state.data_services = DataServiceRegistry(SessionLocal)
    app.state.gis_orchestrator = GISScrapeOrchestrator()
    yield TestClient(app)
    app.dependency_overrides.clear()

def register(client, email="owner@example.com", organization_name="Acme Farms"):
    response = client.post("/auth/register", json={
        "email": email,
        "password": "password123",
        "name": "Test Owner",
        "organization_name": organization_name
    })
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['access_token']}"}
    me = client.get("/auth/me", headers=headers).json()
    return headers, me

@pytest.fixture
def auth_headers(client):
    headers, _ = register(client)
    return headers

@pytest.fixture
def gis_headers(client, db_session):
    """Headers of a user whose organization has the GIS scraper enabled"""
    headers, me = register(client, email="gis@example.com", organization_name="GIS Org")
    grant_feature(db_session, me["organization_id"])
    return headers

def make_tenant(db, organization_name="Tenant Org", email="tenant@example.com"):
    organization = Organization(name=organization_name)
    db.add(organization)
    db.flush()
    user = User(
        organization_id=organization.id,
        email=email,
        name="Tenant User",
        password_hash="not-a-real-hash"
    )
    db.add(user)
    db.commit()
    return Tenant(user_id=user.id, organization_id=organization.id)

@pytest.fixture
def tenant(db_session):
    tenant = make_tenant(db_session)
    grant_feature(db_session, tenant.organization_id)
    return tenant

@pytest.fixture
def permissions(db_session):
    return GISPermissionChecker(db_session)
