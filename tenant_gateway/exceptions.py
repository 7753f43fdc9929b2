"""
Custom exceptions for tenant resolution
Keep it simple but comprehensive
"""
from typing import Optional


class TenantGatewayException(Exception):
    """Base exception for all tenant gateway errors"""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses"""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


# ============================================================
# Backing Store Exceptions
# ============================================================

class TenantStoreError(TenantGatewayException):
    """A tenant stored procedure call failed or timed out"""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Tenant store call '{operation}' failed: {reason}",
            error_code="TENANT_STORE_ERROR",
            details={"operation": operation, "reason": reason}
        )
        self.operation = operation


class TenantContextError(TenantGatewayException):
    """Row-level security context could not be activated"""

    def __init__(self, tenant_id: str, reason: str):
        super().__init__(
            message="Failed to set tenant context",
            error_code="TENANT_CONTEXT_ERROR",
            details={"tenant_id": tenant_id, "reason": reason}
        )
        self.tenant_id = tenant_id


# ============================================================
# HTTP-facing Exceptions
# ============================================================

class TenantResolutionHTTPError(TenantGatewayException):
    """Tenant resolution produced an error for a route that requires a tenant"""

    def __init__(self, code: str, message: str, details: str, status_code: int, suggestion: str):
        super().__init__(message=message, error_code=code, details={"details": details})
        self.status_code = status_code
        self.suggestion = suggestion
        self.description = details

    def to_dict(self) -> dict:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.description,
            "suggestion": self.suggestion
        }


class InvalidWebhookSignatureError(TenantGatewayException):
    """Webhook signature missing or does not match the shared secret"""

    def __init__(self, reason: str = "Invalid webhook signature"):
        super().__init__(message=reason, error_code="INVALID_WEBHOOK_SIGNATURE")
