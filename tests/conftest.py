"""
Shared fixtures: fake clock, call-counting tenant store, fake database session
"""
from typing import Any, Dict, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient

from tenant_gateway.core.database import get_db
from tenant_gateway.dependencies import get_tenant_store
from tenant_gateway.exceptions import TenantStoreError
from tenant_gateway.main import create_app
from tenant_gateway.tenancy import TenantCache


ACME_ID = "6f1c1a52-8a0e-4a8b-9f5e-2b6f0c6e7a11"


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubTenantStore:
    """In-memory TenantStore that counts remote calls"""

    def __init__(self, rows: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.rows = rows or {}
        self.lookup_calls: List[str] = []
        self.context_calls: List[str] = []
        self.fail_lookup = False
        self.fail_context = False

    async def lookup_tenant_by_subdomain(self, subdomain: str) -> List[Dict[str, Any]]:
        self.lookup_calls.append(subdomain)
        if self.fail_lookup:
            raise TenantStoreError("get_tenant_by_subdomain", "connection refused")
        return list(self.rows.get(subdomain, []))

    async def set_tenant_context(self, tenant_id: str) -> None:
        self.context_calls.append(tenant_id)
        if self.fail_context:
            raise TenantStoreError("set_tenant_context", "permission denied")


def tenant_row(tenant_id: str, name: str, status: str = "active", settings: Optional[dict] = None) -> dict:
    return {
        "tenant_id": tenant_id,
        "tenant_name": name,
        "tenant_status": status,
        "tenant_settings": settings,
    }


class FakeResult:
    def __init__(self, rows=None, scalar=None):
        self._rows = rows or []
        self._scalar = scalar

    def mappings(self):
        return self

    def all(self):
        return self._rows

    def scalar_one(self):
        return self._scalar


class FakeSession:
    """Stands in for AsyncSession in the phrases endpoint"""

    def __init__(self, phrases: Optional[List[dict]] = None, error: Optional[Exception] = None):
        self.phrases = phrases or []
        self.error = error
        self.statements: List[tuple] = []

    async def execute(self, statement, params=None):
        sql = str(statement)
        self.statements.append((sql, params or {}))
        if self.error is not None:
            raise self.error
        if "count(*)" in sql:
            return FakeResult(scalar=len(self.phrases))
        rows = self.phrases
        if params and "limit" in params:
            rows = rows[params["offset"]:params["offset"] + params["limit"]]
        return FakeResult(rows=rows)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return TenantCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def store():
    return StubTenantStore({
        "acme": [tenant_row(ACME_ID, "Acme", settings={"theme": "dark"})],
        "go": [tenant_row("t-go", "Go Corp", status="suspended")],
    })


@pytest.fixture
def db_session():
    return FakeSession()


@pytest.fixture
def app(cache, store, db_session):
    application = create_app(tenant_cache=cache)

    async def override_db():
        yield db_session

    application.dependency_overrides[get_db] = override_db
    application.dependency_overrides[get_tenant_store] = lambda: store
    return application


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://acme.example.com") as ac:
        yield ac
