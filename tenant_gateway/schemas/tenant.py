"""Tenant Pydantic schemas"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TenantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class TenantErrorCode(str, Enum):
    INVALID_SUBDOMAIN = "INVALID_SUBDOMAIN"
    INVALID_SUBDOMAIN_FORMAT = "INVALID_SUBDOMAIN_FORMAT"
    TENANT_NOT_FOUND = "TENANT_NOT_FOUND"
    TENANT_RESOLUTION_ERROR = "TENANT_RESOLUTION_ERROR"


class TenantRecord(BaseModel):
    """
    An active tenant as handed to request handlers

    `settings` is an open JSON-like mapping of per-tenant overrides
    (theme, page sizes, ...). Unknown keys are kept as-is.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    subdomain: str
    name: str
    status: str = TenantStatus.ACTIVE.value
    settings: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE.value


class TenantError(BaseModel):
    """Structured resolution failure"""
    code: TenantErrorCode
    message: str
    details: str


class ResolutionResult(BaseModel):
    """Outcome of resolving a request to a tenant: exactly one side is set"""
    tenant: Optional[TenantRecord] = None
    error: Optional[TenantError] = None

    @model_validator(mode="after")
    def check_exactly_one(self):
        if (self.tenant is None) == (self.error is None):
            raise ValueError("exactly one of tenant or error must be set")
        return self

    @property
    def ok(self) -> bool:
        return self.tenant is not None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")


class CacheStatsResponse(BaseModel):
    size: int
    keys: List[str]
    ttl_seconds: int


class CacheInvalidationResponse(BaseModel):
    invalidated: int
    subdomain: Optional[str] = None


class SettingsChangedEvent(BaseModel):
    """Webhook body announcing that a tenant's settings changed"""
    subdomain: Optional[str] = Field(default=None, min_length=1, max_length=50)
    all: bool = False

    @model_validator(mode="after")
    def check_target(self):
        if not self.all and not self.subdomain:
            raise ValueError("either subdomain or all=true is required")
        return self


class CurrentTenantResponse(BaseModel):
    id: str
    name: str
    subdomain: str
    theme: str
    config: Dict[str, Any]
