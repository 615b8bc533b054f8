"""
Tests for the cached domain data services and their registry
"""
import asyncio
import pytest
from backoffice.cache.ttl_cache import TTLCache
from backoffice.database.connection import SessionLocal
from backoffice.database.models import Customer, Transaction
from backoffice.services.data_service import (
    CRMDataService, LeadDataService, TransactionDataService
)
from backoffice.services.registry import DataServiceRegistry
from backoffice.services.transactions import summarize_transactions
from tests.conftest import make_tenant

class CountingFetcher:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(0)
        return self.value

class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def crm(clock):
    return CRMDataService(
        CountingFetcher([{"id": "c1"}]),
        CountingFetcher([{"id": "i1"}]),
        cache=TTLCache(default_ttl=30, clock=clock)
    )

async def no_data():
    return []

SERVICE_FACTORIES = {
    CRMDataService: lambda: CRMDataService(no_data, no_data),
    LeadDataService: lambda: LeadDataService(no_data, no_data),
    TransactionDataService: lambda: TransactionDataService(no_data),
}
SERVICES = list(SERVICE_FACTORIES)

class TestInvalidationGraph:
    @pytest.mark.parametrize("service_class", SERVICES)
    def test_every_composite_depends_on_each_constituent(self, service_class):
        for composite, constituents in service_class.COMPOSITES.items():
            assert constituents
            for key in constituents:
                assert composite in service_class.dependents_of(key)

    @pytest.mark.parametrize("service_class", SERVICES)
    def test_invalidating_a_constituent_drops_its_composites(self, service_class):
        service = SERVICE_FACTORIES[service_class]()

        for key in service_class.cache_keys():
            service.cache.set(key, "value")

        for composite, constituents in service_class.COMPOSITES.items():
            for key in constituents:
                service.cache.set(key, "value")
                service.cache.set(composite, "value")
                service.invalidate(key)
                assert service.cache.get(key) is None
                assert service.cache.get(composite) is None

    def test_expected_keys(self):
        assert CRMDataService.dependents_of("customers") == {"crm-data"}
        assert CRMDataService.dependents_of("interactions") == {"crm-data"}
        assert LeadDataService.dependents_of("stats") == {"leads-and-stats"}
        assert TransactionDataService.dependents_of("transactions") == {"transaction-summary"}
        assert CRMDataService.dependents_of("crm-data") == set()

class TestCRMDataService:
    @pytest.mark.asyncio
    async def test_second_read_served_from_cache(self, crm):
        assert await crm.get_customers() == [{"id": "c1"}]
        assert await crm.get_customers() == [{"id": "c1"}]
        assert crm._fetch_customers.calls == 1

    @pytest.mark.asyncio
    async def test_force_refresh_bypasses_cache(self, crm):
        await crm.get_customers()
        await crm.get_customers(force_refresh=True)
        assert crm._fetch_customers.calls == 2

    @pytest.mark.asyncio
    async def test_expired_entry_refetches(self, crm, clock):
        await crm.get_customers()
        clock.now += 31
        await crm.get_customers()
        assert crm._fetch_customers.calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_reads_fetch_once(self, crm):
        results = await asyncio.gather(*(crm.get_customers() for _ in range(5)))
        assert all(result == [{"id": "c1"}] for result in results)
        assert crm._fetch_customers.calls == 1

    @pytest.mark.asyncio
    async def test_composite_is_cached_and_invalidated_with_customers(self, crm):
        data = await crm.get_crm_data()
        assert data == {"customers": [{"id": "c1"}], "interactions": [{"id": "i1"}]}

        crm.invalidate_customers()
        assert crm.cache.get("crm-data") is None
        assert crm.cache.get("interactions") == [{"id": "i1"}]

        await crm.get_crm_data()
        assert crm._fetch_customers.calls == 2
        assert crm._fetch_interactions.calls == 1

    @pytest.mark.asyncio
    async def test_failed_fetch_is_not_cached(self, clock):
        attempts = 0

        async def flaky():
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                raise RuntimeError("database unavailable")
            return [{"id": "c1"}]

        service = CRMDataService(flaky, CountingFetcher([]), cache=TTLCache(clock=clock))

        with pytest.raises(RuntimeError):
            await service.get_customers()
        assert "customers" not in service.cache

        assert await service.get_customers() == [{"id": "c1"}]
        assert attempts == 2

    @pytest.mark.asyncio
    async def test_invalidation_during_fetch_discards_result(self, clock):
        started = asyncio.Event()
        release = asyncio.Event()
        rows = [[{"id": "c1"}], [{"id": "c1"}, {"id": "c2"}]]

        async def slow_customers():
            result = rows.pop(0)
            started.set()
            await release.wait()
            return result

        service = CRMDataService(slow_customers, CountingFetcher([]), cache=TTLCache(clock=clock))

        read = asyncio.create_task(service.get_customers())
        await started.wait()
        service.invalidate_customers()
        release.set()

        # The in-flight caller still gets its answer, but it is not cached
        assert await read == [{"id": "c1"}]
        assert "customers" not in service.cache

        assert await service.get_customers() == [{"id": "c1"}, {"id": "c2"}]
        assert "customers" in service.cache

    @pytest.mark.asyncio
    async def test_invalidate_cache_clears_everything(self, crm):
        await crm.get_crm_data()
        crm.invalidate_cache()
        assert len(crm.cache) == 0

class TestTransactionSummary:
    def test_summarize_transactions(self):
        summary = summarize_transactions([
            {"type": "income", "amount": "100.50"},
            {"type": "income", "amount": "49.50"},
            {"type": "expense", "amount": "30.00"},
        ])
        assert summary == {"total_income": 150.0, "total_expenses": 30.0, "net_balance": 120.0}

    def test_summarize_no_transactions(self):
        assert summarize_transactions([]) == {
            "total_income": 0.0, "total_expenses": 0.0, "net_balance": 0.0
        }

    @pytest.mark.asyncio
    async def test_summary_dropped_with_transactions(self):
        fetch = CountingFetcher([{"type": "income", "amount": "10"}])
        service = TransactionDataService(fetch)

        assert (await service.get_summary())["total_income"] == 10.0
        fetch.value = [{"type": "income", "amount": "25"}]
        assert (await service.get_summary())["total_income"] == 10.0

        service.invalidate_transactions()
        assert (await service.get_summary())["total_income"] == 25.0

class TestDataServiceRegistry:
    def test_one_service_per_organization(self):
        registry = DataServiceRegistry(SessionLocal)

        assert registry.crm("org-1") is registry.crm("org-1")
        assert registry.crm("org-1") is not registry.crm("org-2")
        assert registry.crm("org-1").cache is not registry.crm("org-2").cache
        assert registry.leads("org-1").deduplicator is not registry.crm("org-1").deduplicator

    @pytest.mark.asyncio
    async def test_fetchers_are_scoped_to_organization(self, db_session):
        first = make_tenant(db_session, "First", "first@example.com")
        second = make_tenant(db_session, "Second", "second@example.com")
        db_session.add_all([
            Customer(organization_id=first.organization_id, full_name="Alice"),
            Customer(organization_id=second.organization_id, full_name="Bob"),
            Transaction(organization_id=first.organization_id, type="expense", category="fuel", amount=12),
        ])
        db_session.commit()

        registry = DataServiceRegistry(SessionLocal)
        customers = await registry.crm(first.organization_id).get_customers()
        summary = await registry.transactions(first.organization_id).get_summary()
        stats = await registry.leads(second.organization_id).get_stats()

        assert [c["full_name"] for c in customers] == ["Alice"]
        assert summary["total_expenses"] == 12.0
        assert stats["total_leads"] == 0
