"""
Tests for GIS entitlement checks
"""
import fnmatch

import pytest
from unittest.mock import Mock
from backoffice.cache.manager import CacheManager
from backoffice.database.seeder import grant_feature, revoke_feature
from backoffice.gis.exceptions import GISAccessDeniedError
from backoffice.gis.permissions import GISPermissionChecker
from tests.conftest import make_tenant

def test_no_permission_row_denies(db_session):
    tenant = make_tenant(db_session)
    checker = GISPermissionChecker(db_session)

    assert checker.has_permission(tenant.organization_id) is False
    with pytest.raises(GISAccessDeniedError) as exc_info:
        checker.require(tenant.organization_id)
    assert exc_info.value.status_code == 403

def test_granted_and_revoked(db_session):
    tenant = make_tenant(db_session)
    checker = GISPermissionChecker(db_session)

    grant_feature(db_session, tenant.organization_id)
    assert checker.has_permission(tenant.organization_id) is True

    revoke_feature(db_session, tenant.organization_id)
    assert checker.has_permission(tenant.organization_id) is False

def test_other_feature_not_granted(db_session):
    tenant = make_tenant(db_session)
    grant_feature(db_session, tenant.organization_id, feature="gis_scraper")

    checker = GISPermissionChecker(db_session)
    assert checker.has_permission(tenant.organization_id, "gis_export") is False

def test_cached_answer_skips_database(db_session):
    cache_manager = Mock()
    cache_manager.get_cached_gis_permission.return_value = True
    db = Mock()

    checker = GISPermissionChecker(db, cache_manager)
    assert checker.has_permission("org-1") is True
    db.query.assert_not_called()

def test_database_answer_is_cached(db_session):
    tenant = make_tenant(db_session)
    grant_feature(db_session, tenant.organization_id)
    cache_manager = Mock()
    cache_manager.get_cached_gis_permission.return_value = None

    checker = GISPermissionChecker(db_session, cache_manager)
    assert checker.has_permission(tenant.organization_id) is True
    cache_manager.cache_gis_permission.assert_called_once_with(
        tenant.organization_id, "gis_scraper", True
    )

class DictRedis:
    """Just enough of the redis client for the cache manager"""

    def __init__(self):
        self.store = {}

    def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    def get(self, key):
        return self.store.get(key)

    def keys(self, pattern):
        return [key for key in self.store if fnmatch.fnmatch(key, pattern)]

    def delete(self, *keys):
        return sum(1 for key in keys if self.store.pop(key, None) is not None)

def test_revoke_drops_cached_grant(db_session):
    tenant = make_tenant(db_session)
    cache_manager = CacheManager(DictRedis())
    checker = GISPermissionChecker(db_session, cache_manager)

    grant_feature(db_session, tenant.organization_id, cache_manager=cache_manager)
    assert checker.has_permission(tenant.organization_id) is True
    assert cache_manager.get_cached_gis_permission(tenant.organization_id, "gis_scraper") is True

    revoke_feature(db_session, tenant.organization_id, cache_manager=cache_manager)
    assert cache_manager.get_cached_gis_permission(tenant.organization_id, "gis_scraper") is None
    assert checker.has_permission(tenant.organization_id) is False

def test_grant_drops_cached_denial(db_session):
    tenant = make_tenant(db_session)
    cache_manager = CacheManager(DictRedis())
    checker = GISPermissionChecker(db_session, cache_manager)

    assert checker.has_permission(tenant.organization_id) is False
    grant_feature(db_session, tenant.organization_id, cache_manager=cache_manager)
    assert checker.has_permission(tenant.organization_id) is True

def test_seeder_command_revokes(db_session):
    from backoffice.database import seeder

    tenant = make_tenant(db_session)
    grant_feature(db_session, tenant.organization_id)

    assert seeder.main(["revoke", tenant.organization_id]) == 0
    db_session.expire_all()
    assert GISPermissionChecker(db_session).has_permission(tenant.organization_id) is False

    assert seeder.main(["revoke", "no-such-org"]) == 1
    assert seeder.main(["bogus"]) == 2
