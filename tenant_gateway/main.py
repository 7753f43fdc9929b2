"""Main FastAPI application"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .core.config import settings
from .core.database import close_db
from .core.logging_config import configure_logging
from .exceptions import (
    InvalidWebhookSignatureError,
    TenantGatewayException,
    TenantResolutionHTTPError,
)
from .middleware import RequestTracingMiddleware
from .routers import health, phrases, tenants
from .tenancy import TenantCache

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown"""
    logger.info("app_starting", app=settings.app_name, version=settings.app_version)

    yield

    logger.info("app_shutting_down")
    await close_db()


async def tenant_resolution_exception_handler(request: Request, exc: TenantResolutionHTTPError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def webhook_signature_exception_handler(request: Request, exc: InvalidWebhookSignatureError):
    return JSONResponse(status_code=401, content=exc.to_dict())


async def gateway_exception_handler(request: Request, exc: TenantGatewayException):
    logger.error("gateway_exception", error_code=exc.error_code, message=exc.message)
    return JSONResponse(status_code=500, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors"""
    return JSONResponse(
        status_code=422,
        content={
            "error": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": jsonable_encoder(exc.errors())
        }
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error("unhandled_exception", error=str(exc), exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_SERVER_ERROR",
            "message": "An unexpected error occurred"
        }
    )


def create_app(tenant_cache: TenantCache = None) -> FastAPI:
    """
    Build the application

    Args:
        tenant_cache: Cache to share across requests; a fresh one using
            TENANT_CACHE_TTL_SECONDS is created when omitted
    """
    configure_logging(settings.log_level, json_logs=settings.json_logs)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Subdomain-based tenant resolution with PostgreSQL row-level security",
        lifespan=lifespan,
    )
    if tenant_cache is None:
        tenant_cache = TenantCache(ttl_seconds=settings.tenant_cache_ttl_seconds)
    app.state.tenant_cache = tenant_cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Tenant-ID", settings.webhook_signature_header],
        max_age=86400,
    )
    app.add_middleware(RequestTracingMiddleware)

    app.add_exception_handler(TenantResolutionHTTPError, tenant_resolution_exception_handler)
    app.add_exception_handler(InvalidWebhookSignatureError, webhook_signature_exception_handler)
    app.add_exception_handler(TenantGatewayException, gateway_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(health.router, tags=["health"])
    app.include_router(tenants.router, prefix="/api", tags=["tenants"])
    app.include_router(phrases.router, prefix="/api", tags=["phrases"])

    @app.get("/")
    async def root():
        return {
            "app": settings.app_name,
            "version": settings.app_version,
            "status": "online",
        }

    return app


app = create_app()
