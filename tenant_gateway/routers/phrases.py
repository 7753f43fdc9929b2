"""
Tenant-scoped phrases API

The tenant context is already active on the request's session when these
handlers run, so the queries carry no tenant filter: the database's
row-level security policies restrict `phrases` to the current tenant.
"""
import html
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from ..core.database import get_db
from ..dependencies import require_tenant
from ..schemas.phrase import Pagination, PhraseItem, PhraseListResponse, PhraseTenant, Sorting
from ..schemas.tenant import TenantRecord
from ..tenancy import get_tenant_config

logger = structlog.get_logger(__name__)

router = APIRouter()

MAX_SEARCH_LENGTH = 500

DEFAULT_PHRASES_CONFIG: Dict[str, Any] = {
    "maxPhrasesPerRequest": 50,
    "enablePagination": True,
    "enableSorting": True,
    "defaultSortOrder": "created_at",
}

ALLOWED_SORT_FIELDS = ("created_at", "updated_at", "content")
ALLOWED_SORT_ORDERS = ("asc", "desc")


def sanitize_content(content) -> str:
    """HTML-escape phrase content before it leaves the service"""
    if not content or not isinstance(content, str):
        return ""
    return html.escape(content, quote=True).strip()


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _as_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _log_tenant_access(tenant: TenantRecord, action: str, **metadata) -> None:
    logger.info(
        "tenant_access",
        tenant_id=tenant.id,
        tenant_subdomain=tenant.subdomain,
        action=action,
        **metadata
    )


@router.get("/phrases", response_model=PhraseListResponse, response_model_exclude_none=True)
async def list_phrases(
    page: int = Query(1, ge=1, le=10000),
    limit: Optional[int] = Query(None, ge=1, le=100),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    search: Optional[str] = Query(None),
    tenant: TenantRecord = Depends(require_tenant),
    db: AsyncSession = Depends(get_db),
):
    """List the current tenant's phrases with optional search, sorting and pagination"""
    # Length is checked on the trimmed term, padding does not count
    search = search.strip() if search else None
    if search and len(search) > MAX_SEARCH_LENGTH:
        raise RequestValidationError([{
            "type": "string_too_long",
            "loc": ("query", "search"),
            "msg": f"String should have at most {MAX_SEARCH_LENGTH} characters",
            "input": search,
        }])

    config = get_tenant_config(tenant, DEFAULT_PHRASES_CONFIG)
    max_per_request = max(1, _as_int(config.get("maxPhrasesPerRequest"), 50))

    limit_num = min(max_per_request, limit or max_per_request)
    offset = (page - 1) * limit_num

    if not config.get("enableSorting", True):
        sort_by, sort_order = None, "asc"
    sort_by = sort_by or config.get("defaultSortOrder")
    valid_sort_by = sort_by if sort_by in ALLOWED_SORT_FIELDS else "created_at"
    valid_sort_order = sort_order.lower() if sort_order.lower() in ALLOWED_SORT_ORDERS else "asc"

    where = ""
    params: Dict[str, Any] = {}
    if search:
        where = " WHERE content ILIKE :pattern ESCAPE '\\'"
        params["pattern"] = f"%{escape_like(search)}%"

    # Sort column and direction come from the whitelists above
    select_sql = (
        f"SELECT id, content, created_at, updated_at FROM phrases{where} "
        f"ORDER BY {valid_sort_by} {valid_sort_order.upper()}"
    )
    paginate = bool(config.get("enablePagination", True))
    if paginate:
        select_sql += " LIMIT :limit OFFSET :offset"
        params.update(limit=limit_num, offset=offset)

    try:
        rows = (await db.execute(text(select_sql), params)).mappings().all()
        total = (await db.execute(
            text(f"SELECT count(*) FROM phrases{where}"),
            {k: v for k, v in params.items() if k == "pattern"},
        )).scalar_one()
    except SQLAlchemyError as e:
        logger.error("phrases_query_failed", tenant_id=tenant.id, error=str(e))
        return JSONResponse(
            status_code=500,
            content={
                "error": "Database error",
                "message": "Unable to retrieve phrases at this time",
                "tenantId": tenant.id,
            },
        )

    tenant_info = PhraseTenant(
        id=tenant.id,
        name=tenant.name,
        subdomain=tenant.subdomain,
        theme=config.get("theme") or "default",
    )

    if not rows:
        return PhraseListResponse(
            data=[],
            count=0,
            tenant=tenant_info,
            pagination=Pagination(page=page, limit=limit_num, total=0, totalPages=0) if paginate else None,
            message="No phrases found for this tenant",
        )

    phrases = [
        PhraseItem(
            id=str(row["id"]),
            content=sanitize_content(row["content"]),
            createdAt=row["created_at"],
            updatedAt=row["updated_at"],
        )
        for row in rows
    ]

    total_pages = math.ceil(total / limit_num) if paginate else 1

    _log_tenant_access(tenant, "list_phrases", returned=len(phrases), page=page, search=bool(search))

    return PhraseListResponse(
        data=phrases,
        count=len(phrases),
        totalCount=total,
        tenant=tenant_info,
        pagination=Pagination(
            page=page,
            limit=limit_num,
            total=total,
            totalPages=total_pages,
            hasNext=page < total_pages,
            hasPrev=page > 1,
        ) if paginate else None,
        sorting=Sorting(sortBy=valid_sort_by, sortOrder=valid_sort_order),
        timestamp=datetime.now(timezone.utc),
    )
