"""API routers"""

from . import health, phrases, tenants

__all__ = ["health", "phrases", "tenants"]
