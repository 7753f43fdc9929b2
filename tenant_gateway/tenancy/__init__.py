"""Tenant resolution: subdomain parsing, caching, lookup and RLS context"""

from .subdomain import (
    EXCLUDED_SUBDOMAINS,
    RESERVED_SUBDOMAINS,
    extract_subdomain,
    is_valid_subdomain,
    request_host_parts,
)
from .cache import CacheEntry, CacheStats, TenantCache
from .store import TenantStore, SqlTenantStore
from .lookup import LookupResult, LookupStatus, TenantLookupService
from .context import TenantContextSetter, current_tenant_id, reset_tenant_context
from .resolver import (
    ResolutionState,
    TenantResolver,
    error_status_code,
    error_suggestion,
    get_tenant_config,
    has_valid_tenant_context,
)

__all__ = [
    "EXCLUDED_SUBDOMAINS",
    "RESERVED_SUBDOMAINS",
    "extract_subdomain",
    "is_valid_subdomain",
    "request_host_parts",
    "CacheEntry",
    "CacheStats",
    "TenantCache",
    "TenantStore",
    "SqlTenantStore",
    "LookupResult",
    "LookupStatus",
    "TenantLookupService",
    "TenantContextSetter",
    "current_tenant_id",
    "reset_tenant_context",
    "ResolutionState",
    "TenantResolver",
    "error_status_code",
    "error_suggestion",
    "get_tenant_config",
    "has_valid_tenant_context",
]
