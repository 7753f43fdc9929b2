"""Health and status endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from ..core.database import get_db
from ..core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "version": settings.app_version
    }


@router.get("/health/db")
async def database_health(db: AsyncSession = Depends(get_db)):
    """Database health check, including the tenant stored procedures"""
    health_status = {
        "status": "healthy",
        "version": settings.app_version,
        "components": {}
    }

    try:
        await db.execute(text("SELECT 1"))
        health_status["components"]["database"] = "healthy"
    except Exception as e:
        health_status["components"]["database"] = f"unhealthy: {e}"
        health_status["status"] = "unhealthy"
        return health_status

    try:
        result = await db.execute(text(
            "SELECT count(*) FROM pg_proc "
            "WHERE proname IN ('get_tenant_by_subdomain', 'set_tenant_context')"
        ))
        found = result.scalar_one()
        health_status["components"]["tenant_procedures"] = "healthy" if found >= 2 else "missing"
        if found < 2:
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["components"]["tenant_procedures"] = f"unhealthy: {e}"
        health_status["status"] = "degraded"

    return health_status
