"""
Tenant endpoints

Cache administration for callers elsewhere in the system (a tenant's
settings changed, force the next request to re-fetch it) and a view of the
tenant resolved for the calling host.
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError
import structlog

from ..core.config import settings
from ..dependencies import get_tenant_cache, require_tenant
from ..schemas.tenant import (
    CacheInvalidationResponse,
    CacheStatsResponse,
    CurrentTenantResponse,
    SettingsChangedEvent,
    TenantRecord,
)
from ..tenancy import TenantCache, get_tenant_config
from ..webhook_validation import verify_webhook_signature

logger = structlog.get_logger(__name__)

router = APIRouter()

DEFAULT_TENANT_CONFIG = {
    "theme": "default",
}


@router.get("/tenant", response_model=CurrentTenantResponse)
async def current_tenant(tenant: TenantRecord = Depends(require_tenant)):
    """The tenant serving this host, with its merged configuration"""
    config = get_tenant_config(tenant, DEFAULT_TENANT_CONFIG)
    return CurrentTenantResponse(
        id=tenant.id,
        name=tenant.name,
        subdomain=tenant.subdomain,
        theme=config.get("theme") or "default",
        config=config,
    )


@router.get("/tenants/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: TenantCache = Depends(get_tenant_cache)):
    stats = cache.stats()
    return CacheStatsResponse(size=stats.size, keys=stats.keys, ttl_seconds=stats.ttl_seconds)


@router.delete("/tenants/cache/{subdomain}", response_model=CacheInvalidationResponse)
async def invalidate_tenant(subdomain: str, cache: TenantCache = Depends(get_tenant_cache)):
    removed = cache.invalidate(subdomain)
    return CacheInvalidationResponse(invalidated=int(removed), subdomain=subdomain)


@router.delete("/tenants/cache", response_model=CacheInvalidationResponse)
async def clear_tenant_cache(cache: TenantCache = Depends(get_tenant_cache)):
    return CacheInvalidationResponse(invalidated=cache.clear())


@router.post("/tenants/webhooks/settings-changed", response_model=CacheInvalidationResponse)
async def tenant_settings_changed(request: Request, cache: TenantCache = Depends(get_tenant_cache)):
    """
    Tenant-settings-changed webhook

    Body: {"subdomain": "acme"} or {"all": true}. Signed with
    HMAC-SHA256 when WEBHOOK_SECRET_KEY is configured.
    """
    body = await request.body()
    verify_webhook_signature(
        body,
        request.headers.get(settings.webhook_signature_header),
        settings.webhook_secret_key,
    )

    try:
        event = SettingsChangedEvent.model_validate_json(body)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )

    if event.all:
        dropped = cache.clear()
        logger.info("tenant_settings_changed", scope="all", invalidated=dropped)
        return CacheInvalidationResponse(invalidated=dropped)

    removed = cache.invalidate(event.subdomain)
    logger.info("tenant_settings_changed", subdomain=event.subdomain, invalidated=int(removed))
    return CacheInvalidationResponse(invalidated=int(removed), subdomain=event.subdomain)
