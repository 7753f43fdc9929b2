"""
Tenant resolution orchestrator

Runs extract -> validate -> lookup -> set context for one request and always
returns a ResolutionResult; nothing raised by the steps escapes `resolve`.

    Start -> Extracting -> Validating -> LookingUp -> SettingContext -> Resolved
                 |             |             |              |
                 +-------------+------ Errored -------------+
"""
from enum import Enum
from typing import Any, Dict, Mapping, Optional

import structlog
from starlette.requests import Request

from ..schemas.tenant import ResolutionResult, TenantError, TenantErrorCode, TenantRecord
from .cache import TenantCache
from .context import TenantContextSetter
from .lookup import LookupStatus, TenantLookupService
from .store import TenantStore
from .subdomain import extract_subdomain, is_valid_subdomain, request_host_parts

logger = structlog.get_logger(__name__)


class ResolutionState(str, Enum):
    START = "start"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    LOOKING_UP = "looking_up"
    SETTING_CONTEXT = "setting_context"
    RESOLVED = "resolved"
    ERRORED = "errored"


ERROR_STATUS_CODES: Dict[str, int] = {
    TenantErrorCode.INVALID_SUBDOMAIN.value: 400,
    TenantErrorCode.INVALID_SUBDOMAIN_FORMAT.value: 400,
    TenantErrorCode.TENANT_NOT_FOUND.value: 404,
    TenantErrorCode.TENANT_RESOLUTION_ERROR.value: 500,
}

ERROR_SUGGESTIONS: Dict[str, str] = {
    TenantErrorCode.INVALID_SUBDOMAIN.value:
        "Please access the application using a valid subdomain (e.g., yourcompany.yourdomain.com)",
    TenantErrorCode.INVALID_SUBDOMAIN_FORMAT.value:
        "Subdomains must be 2-50 characters long and contain only letters, numbers, and hyphens",
    TenantErrorCode.TENANT_NOT_FOUND.value:
        "Please verify your subdomain is correct and your account is active. Contact support if this persists.",
    TenantErrorCode.TENANT_RESOLUTION_ERROR.value:
        "Please try again in a moment. Contact support if the problem continues.",
}


def error_status_code(code: str) -> int:
    return ERROR_STATUS_CODES.get(code, 400)


def error_suggestion(code: str) -> str:
    return ERROR_SUGGESTIONS.get(code, "Please contact support for assistance.")


def invalid_subdomain_error() -> TenantError:
    return TenantError(
        code=TenantErrorCode.INVALID_SUBDOMAIN,
        message="No valid subdomain found in request",
        details="Please access the application using a valid tenant subdomain (e.g., acme.yourapp.com)",
    )


def invalid_format_error() -> TenantError:
    return TenantError(
        code=TenantErrorCode.INVALID_SUBDOMAIN_FORMAT,
        message="Invalid subdomain format",
        details="Subdomain must be 2-50 characters, alphanumeric with hyphens allowed",
    )


def tenant_not_found_error(subdomain: str) -> TenantError:
    return TenantError(
        code=TenantErrorCode.TENANT_NOT_FOUND,
        message="Tenant not found or inactive",
        details=f"No active tenant found for subdomain: {subdomain}",
    )


def resolution_error() -> TenantError:
    return TenantError(
        code=TenantErrorCode.TENANT_RESOLUTION_ERROR,
        message="Error resolving tenant",
        details="An internal error occurred while resolving tenant information",
    )


class TenantResolver:
    """
    Resolve the tenant of one request

    Args:
        store: Backing store bound to the request's database session
        cache: Process-wide tenant cache
        dev_fallback: Tenant used on localhost when nothing names one
        dev_query_param: Query parameter overriding the tenant on localhost
    """

    def __init__(
        self,
        store: TenantStore,
        cache: TenantCache,
        dev_fallback: str = "demo",
        dev_query_param: str = "tenant",
    ):
        self.lookup_service = TenantLookupService(store, cache)
        self.context_setter = TenantContextSetter(store)
        self.dev_fallback = dev_fallback
        self.dev_query_param = dev_query_param
        self.state = ResolutionState.START

    def _fail(self, error: TenantError, **log_fields) -> ResolutionResult:
        self.state = ResolutionState.ERRORED
        logger.info("tenant_resolution_failed", code=error.code.value, **log_fields)
        return ResolutionResult(error=error)

    async def resolve(
        self,
        host: Optional[str],
        forwarded_host: Optional[str] = None,
        query_params: Optional[Mapping[str, str]] = None,
    ) -> ResolutionResult:
        try:
            return await self._resolve(host, forwarded_host, query_params)
        except Exception as e:
            self.state = ResolutionState.ERRORED
            logger.error("tenant_resolution_error", error=str(e), error_type=type(e).__name__, exc_info=True)
            return ResolutionResult(error=resolution_error())

    async def resolve_request(self, request: Request) -> ResolutionResult:
        return await self.resolve(*request_host_parts(request))

    async def _resolve(self, host, forwarded_host, query_params) -> ResolutionResult:
        self.state = ResolutionState.EXTRACTING
        subdomain = extract_subdomain(
            host,
            forwarded_host,
            query_params,
            dev_fallback=self.dev_fallback,
            dev_query_param=self.dev_query_param,
        )
        if not subdomain:
            return self._fail(invalid_subdomain_error(), host=host)

        self.state = ResolutionState.VALIDATING
        if not is_valid_subdomain(subdomain):
            return self._fail(invalid_format_error(), subdomain=subdomain)
        subdomain = subdomain.lower()

        self.state = ResolutionState.LOOKING_UP
        result = await self.lookup_service.lookup(subdomain)
        if result.status is LookupStatus.FAILED:
            return self._fail(resolution_error(), subdomain=subdomain, reason=result.error)
        if result.status is LookupStatus.NOT_FOUND:
            return self._fail(tenant_not_found_error(subdomain), subdomain=subdomain, cached=result.cached)

        tenant = result.tenant
        self.state = ResolutionState.SETTING_CONTEXT
        # TenantContextError lands in resolve()'s handler as TENANT_RESOLUTION_ERROR
        await self.context_setter.activate(tenant.id)

        self.state = ResolutionState.RESOLVED
        logger.debug("tenant_resolved", subdomain=subdomain, tenant_id=tenant.id, cached=result.cached)
        return ResolutionResult(tenant=tenant)


def has_valid_tenant_context(result: Optional[ResolutionResult]) -> bool:
    """True when a tenant with an id was resolved and no error was recorded"""
    return bool(result is not None and result.ok and result.tenant.id)


def get_tenant_config(tenant: Optional[TenantRecord], default_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge default configuration with a tenant's settings

    Tenant settings win key by key; keys absent from the defaults pass
    through untouched.
    """
    merged = dict(default_config or {})
    if tenant is None or not tenant.settings:
        return merged
    merged.update(tenant.settings)
    return merged
