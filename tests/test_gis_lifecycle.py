from datetime import datetime, timedelta

import pytest

from backoffice.database.models import Customer, SavedProperty, ScrapedProperty
from backoffice.database.seeder import grant_feature
from backoffice.gis.exceptions import GISAccessDeniedError, PropertyNotFoundError, PropertyStateError
from backoffice.gis.lifecycle import PropertyLifecycleService, purge_expired_scraped_properties
from backoffice.gis.models import GISSearchCriteria, NewScrapedProperty
from tests.conftest import make_tenant

NOW = datetime(2024, 6, 15, 12, 0, 0)

def new_property(address, owner="Jane Farmer", acreage=2.5):
    return NewScrapedProperty(
        owner_name=owner,
        address=address,
        city="Neshannock Township",
        acreage=acreage,
        assessed_value=45000,
        property_type="Unknown",
        search_criteria=GISSearchCriteria(min_acreage=1, max_acreage=5)
    )

@pytest.fixture
def lifecycle(db_session, tenant, permissions):
    return PropertyLifecycleService(db_session, tenant, permissions)

def test_create_scraped_properties_assigns_session(lifecycle):
    session_id, rows = lifecycle.create_scraped_properties(
        [new_property("100 MAIN ST"), new_property("200 OAK RD")], now=NOW
    )

    assert len(rows) == 2
    assert {row.search_session_id for row in rows} == {session_id}
    assert all(row.is_saved is False for row in rows)
    assert rows[0].search_criteria == {"min_acreage": 1.0, "max_acreage": 5.0}

    assert len(lifecycle.get_scraped_properties(session_id)) == 2
    assert lifecycle.get_scraped_properties("other-session") == []

def test_empty_scrape_still_returns_session(lifecycle):
    session_id, rows = lifecycle.create_scraped_properties([], now=NOW)
    assert session_id
    assert rows == []

def test_duplicate_recent_results_are_skipped(lifecycle):
    lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    _, rows = lifecycle.create_scraped_properties(
        [new_property("100 main st"), new_property("300 ELM DR")], now=NOW + timedelta(hours=1)
    )

    assert [row.address for row in rows] == ["300 ELM DR"]

def test_save_copies_and_flags_scraped_row(lifecycle, db_session):
    _, rows = lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    scraped = rows[0]

    saved = lifecycle.save_property(scraped.id, now=NOW + timedelta(minutes=5))

    db_session.refresh(scraped)
    assert scraped.is_saved is True
    assert scraped.saved_at == NOW + timedelta(minutes=5)
    assert saved.scraped_property_id == scraped.id
    assert saved.address == scraped.address
    assert saved.owner_name == scraped.owner_name
    assert saved.acreage == scraped.acreage
    assert saved.original_scraped_at == scraped.scraped_at
    assert saved.exported_to_leads is False

def test_save_twice_is_rejected(lifecycle):
    _, rows = lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    lifecycle.save_property(rows[0].id)

    with pytest.raises(PropertyStateError):
        lifecycle.save_property(rows[0].id)

def test_save_unknown_property(lifecycle):
    with pytest.raises(PropertyNotFoundError) as exc:
        lifecycle.save_property("missing")
    assert exc.value.status_code == 400

def test_delete_saved_property(lifecycle, db_session):
    _, rows = lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    saved = lifecycle.save_property(rows[0].id)

    lifecycle.delete_saved_property(saved.id)

    assert db_session.query(SavedProperty).count() == 0
    with pytest.raises(PropertyNotFoundError):
        lifecycle.delete_saved_property(saved.id)

def test_export_creates_prospect_customer(lifecycle, db_session):
    _, rows = lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    saved = lifecycle.save_property(rows[0].id)

    customer_id = lifecycle.export_saved_property_to_lead(saved.id, now=NOW)

    customer = db_session.query(Customer).filter(Customer.id == customer_id).one()
    assert customer.full_name == "Jane Farmer"
    assert customer.business == "100 MAIN ST, Neshannock Township"
    assert customer.status == "prospect"
    assert customer.organization_id == lifecycle.tenant.organization_id

    db_session.refresh(saved)
    assert saved.exported_to_leads is True
    assert saved.exported_at == NOW

def test_export_twice_is_rejected(lifecycle, db_session):
    _, rows = lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    saved = lifecycle.save_property(rows[0].id)
    lifecycle.export_saved_property_to_lead(saved.id)

    with pytest.raises(PropertyStateError):
        lifecycle.export_saved_property_to_lead(saved.id)
    assert db_session.query(Customer).count() == 1

def test_cleanup_retention_boundary(lifecycle, db_session):
    cutoff = NOW - timedelta(days=7)
    lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=cutoff)
    lifecycle.create_scraped_properties(
        [new_property("200 OAK RD")], now=cutoff - timedelta(milliseconds=1)
    )

    deleted = lifecycle.cleanup(now=NOW)

    assert deleted == 1
    remaining = db_session.query(ScrapedProperty).all()
    assert [row.address for row in remaining] == ["100 MAIN ST"]

def test_cleanup_keeps_saved_rows(lifecycle, db_session):
    _, rows = lifecycle.create_scraped_properties(
        [new_property("100 MAIN ST")], now=NOW - timedelta(days=30)
    )
    lifecycle.save_property(rows[0].id)

    assert lifecycle.cleanup(now=NOW) == 0
    assert db_session.query(ScrapedProperty).count() == 1

def test_force_cleanup_deletes_everything_but_saved_copies(lifecycle, db_session):
    _, rows = lifecycle.create_scraped_properties(
        [new_property("100 MAIN ST"), new_property("200 OAK RD"), new_property("300 ELM DR")], now=NOW
    )
    lifecycle.save_property(rows[0].id)

    deleted = lifecycle.cleanup(force=True, now=NOW)

    assert deleted == 3
    assert db_session.query(ScrapedProperty).count() == 0
    assert db_session.query(SavedProperty).count() == 1

def test_tenants_are_isolated(db_session, lifecycle, permissions):
    other_tenant = make_tenant(db_session, organization_name="Other Org", email="other@example.com")
    grant_feature(db_session, other_tenant.organization_id)
    other = PropertyLifecycleService(db_session, other_tenant, permissions)

    _, rows = lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=NOW)
    saved = lifecycle.save_property(rows[0].id)
    other.create_scraped_properties([new_property("100 MAIN ST")], now=NOW - timedelta(days=30))

    assert len(lifecycle.get_scraped_properties()) == 1
    assert other.get_saved_properties() == []
    with pytest.raises(PropertyNotFoundError):
        other.save_property(rows[0].id)
    with pytest.raises(PropertyNotFoundError):
        other.delete_saved_property(saved.id)

    # Force cleanup only touches the caller's own rows
    assert lifecycle.cleanup(force=True) == 1
    assert len(other.get_scraped_properties()) == 1

def test_access_denied_without_entitlement(db_session, permissions):
    tenant = make_tenant(db_session, organization_name="No GIS", email="nogis@example.com")
    lifecycle = PropertyLifecycleService(db_session, tenant, permissions)

    with pytest.raises(GISAccessDeniedError) as exc:
        lifecycle.get_scraped_properties()
    assert exc.value.status_code == 403

    with pytest.raises(GISAccessDeniedError):
        lifecycle.create_scraped_properties([new_property("100 MAIN ST")])

def test_purge_spans_all_tenants(db_session, lifecycle, permissions):
    other_tenant = make_tenant(db_session, organization_name="Other Org", email="other@example.com")
    grant_feature(db_session, other_tenant.organization_id)
    other = PropertyLifecycleService(db_session, other_tenant, permissions)

    old = NOW - timedelta(days=8)
    lifecycle.create_scraped_properties([new_property("100 MAIN ST")], now=old)
    other.create_scraped_properties([new_property("200 OAK RD")], now=old)
    other.create_scraped_properties([new_property("300 ELM DR")], now=NOW)

    assert purge_expired_scraped_properties(db_session, now=NOW) == 2
    assert [row.address for row in db_session.query(ScrapedProperty).all()] == ["300 ELM DR"]
