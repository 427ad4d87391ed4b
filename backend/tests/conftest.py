"""Pytest configuration and shared fixtures"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from marine_workorders.main import app
from marine_workorders.services import RetryPolicy, ServiceContainer
from marine_workorders.storage import InMemoryBlobStorage
from marine_workorders.store import InMemoryStore, TenantPaths

TENANT_ID = "test-tenant"


class FakeClock:
    """Controllable clock injected wherever services stamp times"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def storage():
    return InMemoryBlobStorage()


@pytest.fixture
def paths():
    return TenantPaths(TENANT_ID)


@pytest.fixture
def retry():
    """Three attempts, no waiting"""
    return RetryPolicy(attempts=3, multiplier=0, max_wait=0)


@pytest.fixture
def container(store, storage, clock, retry):
    return ServiceContainer.build(store, storage, tenant_id=TENANT_ID, clock=clock, retry=retry)


@pytest.fixture
def work_orders(container):
    return container.work_orders


@pytest.fixture
def history(container):
    return container.history


@pytest.fixture
def engine(container):
    return container.engine


@pytest.fixture
def sample_fields():
    """Minimal valid work order fields"""
    return {
        "client_id": "client-1",
        "reported_defect": "Bilge pump runs continuously",
    }


@pytest_asyncio.fixture
async def work_order_id(work_orders, sample_fields):
    """A freshly created work order in UNDER_REVIEW"""
    return await work_orders.create(sample_fields, created_by="tech-1")


@pytest_asyncio.fixture
async def async_client(container):
    """Async test client bound to the in-memory container"""
    app.state.container = container
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.state.container = None

