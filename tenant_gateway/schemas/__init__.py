"""Pydantic schemas"""

from .tenant import (
    TenantStatus,
    TenantErrorCode,
    TenantRecord,
    TenantError,
    ResolutionResult,
    CacheStatsResponse,
    CacheInvalidationResponse,
    SettingsChangedEvent,
    CurrentTenantResponse,
)
from .phrase import PhraseItem, PhraseTenant, Pagination, Sorting, PhraseListResponse

__all__ = [
    "TenantStatus",
    "TenantErrorCode",
    "TenantRecord",
    "TenantError",
    "ResolutionResult",
    "CacheStatsResponse",
    "CacheInvalidationResponse",
    "SettingsChangedEvent",
    "CurrentTenantResponse",
    "PhraseItem",
    "PhraseTenant",
    "Pagination",
    "Sorting",
    "PhraseListResponse",
]
