"""Tenant lookup through the cache and the backing store"""
import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from ..schemas.tenant import TenantRecord
from .cache import TenantCache
from .store import TenantStore

logger = structlog.get_logger(__name__)


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass(frozen=True)
class LookupResult:
    status: LookupStatus
    tenant: Optional[TenantRecord] = None
    error: Optional[str] = None
    cached: bool = False

    @classmethod
    def from_cached(cls, tenant: Optional[TenantRecord]) -> "LookupResult":
        if tenant is None:
            return cls(status=LookupStatus.NOT_FOUND, cached=True)
        return cls(status=LookupStatus.FOUND, tenant=tenant, cached=True)


def _decode_settings(raw) -> dict:
    # asyncpg hands jsonb back as text unless a codec is registered
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    return dict(raw or {})


class TenantLookupService:
    """
    Find the active tenant for a validated subdomain

    Found tenants, missing tenants and inactive tenants are all cached (the
    latter two as None). Store failures are returned as FAILED and never
    cached, so a transient outage does not pin a tenant as missing.
    """

    def __init__(self, store: TenantStore, cache: TenantCache):
        self.store = store
        self.cache = cache

    async def lookup(self, subdomain: str) -> LookupResult:
        entry = self.cache.get(subdomain)
        if entry is not None:
            return LookupResult.from_cached(entry.value)

        try:
            rows = await self.store.lookup_tenant_by_subdomain(subdomain)
        except Exception as e:
            logger.error("tenant_lookup_failed", subdomain=subdomain, error=str(e), error_type=type(e).__name__)
            return LookupResult(status=LookupStatus.FAILED, error=str(e))

        if not rows:
            self.cache.put(subdomain, None)
            return LookupResult(status=LookupStatus.NOT_FOUND)

        row = rows[0]
        tenant = TenantRecord(
            id=str(row["tenant_id"]),
            subdomain=subdomain,
            name=row.get("tenant_name") or "",
            status=row.get("tenant_status") or "",
            settings=_decode_settings(row.get("tenant_settings")),
        )
        if not tenant.is_active:
            logger.warning("tenant_not_active", subdomain=subdomain, status=tenant.status)
            self.cache.put(subdomain, None)
            return LookupResult(status=LookupStatus.NOT_FOUND)

        self.cache.put(subdomain, tenant)
        logger.info("tenant_loaded", subdomain=subdomain, tenant_id=tenant.id)
        return LookupResult(status=LookupStatus.FOUND, tenant=tenant)
