"""
Request tracing and context propagation middleware

Provides request ID tracking, timing, and structlog context
bound for the lifetime of each request.
"""
import uuid
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

logger = structlog.get_logger(__name__)


class RequestTracingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request tracing with context propagation

    Features:
    - Generates or extracts request ID
    - Tracks request timing
    - Adds response headers (X-Request-ID, X-Response-Time, X-Tenant-ID)
    - Binds context to structlog for automatic inclusion in logs
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path
        )

        start_time = time.time()

        logger.info("request_started",
            host=request.headers.get("host"),
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error("request_failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2)
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id", "method", "path")

        duration_ms = (time.time() - start_time) * 1000

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        # Set by the tenant dependency when resolution succeeded
        tenant_id = getattr(request.state, "tenant_id", None)
        if tenant_id:
            response.headers["X-Tenant-ID"] = str(tenant_id)

        logger.info("request_completed",
            request_id=request_id,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
            tenant_id=tenant_id
        )

        return response
