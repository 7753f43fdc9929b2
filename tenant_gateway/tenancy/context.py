"""
Tenant context activation

Tells the database which tenant the current request runs as and mirrors the
tenant id into a request-scoped context variable and the structlog context.
"""
from contextvars import ContextVar
from typing import Optional

import structlog

from ..exceptions import TenantContextError
from .store import TenantStore

logger = structlog.get_logger(__name__)

# Tenant ID - current tenant making the request
tenant_id_var: ContextVar[str] = ContextVar("tenant_id", default="")


def current_tenant_id() -> Optional[str]:
    """Get current tenant ID from context"""
    tenant_id = tenant_id_var.get()
    return tenant_id if tenant_id else None


def reset_tenant_context() -> None:
    tenant_id_var.set("")
    structlog.contextvars.unbind_contextvars("tenant_id")


class TenantContextSetter:
    """Activate row-level security for one tenant; failure is never ignored"""

    def __init__(self, store: TenantStore):
        self.store = store

    async def activate(self, tenant_id: str) -> None:
        """
        Raises:
            TenantContextError: the store could not set the context
        """
        try:
            await self.store.set_tenant_context(tenant_id)
        except Exception as e:
            logger.error("tenant_context_failed", tenant_id=tenant_id, error=str(e))
            raise TenantContextError(tenant_id, str(e)) from e

        tenant_id_var.set(tenant_id)
        structlog.contextvars.bind_contextvars(tenant_id=tenant_id)
