"""
Middleware modules for the CRUD6 server.

This package contains custom middleware for request/response logging
and other cross-cutting concerns.
"""

from .timing_middleware import SLOW_REQUEST_MS, RequestTimingMiddleware

__all__ = ["RequestTimingMiddleware", "SLOW_REQUEST_MS"]
