"""Middleware module"""

from .request_id import RequestTracingMiddleware

__all__ = ["RequestTracingMiddleware"]
