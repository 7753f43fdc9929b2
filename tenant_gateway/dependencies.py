"""FastAPI dependencies for tenant resolution"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .core.config import settings
from .core.database import get_db
from .exceptions import TenantResolutionHTTPError
from .schemas.tenant import ResolutionResult, TenantRecord
from .tenancy import (
    SqlTenantStore,
    TenantCache,
    TenantResolver,
    TenantStore,
    error_status_code,
    error_suggestion,
    has_valid_tenant_context,
)


def get_tenant_cache(request: Request) -> TenantCache:
    """The process-wide cache owned by the application"""
    return request.app.state.tenant_cache


def get_tenant_store(db: AsyncSession = Depends(get_db)) -> TenantStore:
    return SqlTenantStore(db, timeout_seconds=settings.tenant_lookup_timeout_seconds)


def get_tenant_resolver(
    store: TenantStore = Depends(get_tenant_store),
    cache: TenantCache = Depends(get_tenant_cache),
) -> TenantResolver:
    return TenantResolver(
        store,
        cache,
        dev_fallback=settings.dev_fallback_tenant,
        dev_query_param=settings.dev_tenant_query_param,
    )


async def resolve_tenant(
    request: Request,
    resolver: TenantResolver = Depends(get_tenant_resolver),
) -> ResolutionResult:
    """
    Resolve the request's tenant without failing the request

    The outcome is also stored on request.state (tenant, tenant_error,
    tenant_id) for middleware and handlers that read it from there.
    """
    result = await resolver.resolve_request(request)
    request.state.tenant = result.tenant
    request.state.tenant_error = result.error
    if result.tenant is not None:
        request.state.tenant_id = result.tenant.id
    return result


async def require_tenant(result: ResolutionResult = Depends(resolve_tenant)) -> TenantRecord:
    """Resolve the tenant or abort with the mapped HTTP error"""
    if has_valid_tenant_context(result):
        return result.tenant

    if result.error is None:
        raise TenantResolutionHTTPError(
            code="UNKNOWN_TENANT_ERROR",
            message="An unknown error occurred during tenant resolution",
            details="Unknown tenant error",
            status_code=400,
            suggestion=error_suggestion(""),
        )

    code = result.error.code.value
    raise TenantResolutionHTTPError(
        code=code,
        message=result.error.message,
        details=result.error.details,
        status_code=error_status_code(code),
        suggestion=error_suggestion(code),
    )
