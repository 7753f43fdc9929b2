"""
Backing store for tenant metadata and row-level security activation

Both operations are PostgreSQL stored procedures; this module only calls
them. Tenant isolation itself is enforced by the database's RLS policies.
"""
import asyncio
from typing import Any, Dict, List, Protocol

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import TenantStoreError

logger = structlog.get_logger(__name__)

LOOKUP_TENANT_SQL = text(
    "SELECT tenant_id, tenant_name, tenant_status, tenant_settings "
    "FROM get_tenant_by_subdomain(:subdomain_param)"
)

SET_TENANT_CONTEXT_SQL = text("SELECT set_tenant_context(CAST(:tenant_uuid AS uuid))")


class TenantStore(Protocol):
    async def lookup_tenant_by_subdomain(self, subdomain: str) -> List[Dict[str, Any]]:
        """Zero or one rows with tenant_id, tenant_name, tenant_status, tenant_settings"""
        ...

    async def set_tenant_context(self, tenant_id: str) -> None:
        """Scope the rest of the session's queries to tenant_id"""
        ...


class SqlTenantStore:
    """TenantStore backed by a request's SQLAlchemy AsyncSession"""

    def __init__(self, session: AsyncSession, timeout_seconds: float = 5.0):
        self.session = session
        self.timeout_seconds = timeout_seconds

    async def lookup_tenant_by_subdomain(self, subdomain: str) -> List[Dict[str, Any]]:
        try:
            result = await asyncio.wait_for(
                self.session.execute(LOOKUP_TENANT_SQL, {"subdomain_param": subdomain}),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TenantStoreError("get_tenant_by_subdomain", f"timed out after {self.timeout_seconds}s")
        except SQLAlchemyError as e:
            raise TenantStoreError("get_tenant_by_subdomain", str(e)) from e

        return [dict(row) for row in result.mappings().all()]

    async def set_tenant_context(self, tenant_id: str) -> None:
        try:
            await asyncio.wait_for(
                self.session.execute(SET_TENANT_CONTEXT_SQL, {"tenant_uuid": tenant_id}),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise TenantStoreError("set_tenant_context", f"timed out after {self.timeout_seconds}s")
        except SQLAlchemyError as e:
            raise TenantStoreError("set_tenant_context", str(e)) from e

        logger.debug("tenant_context_applied", tenant_id=tenant_id)
