"""
Exception handlers for the CRUD6 server.

This package contains custom exception handlers for different error types
and a setup function to register them with the FastAPI application.
"""

from .crud6_handler import crud6_exception_handler
from .global_handler import global_exception_handler, setup_exception_handlers

__all__ = ["crud6_exception_handler", "global_exception_handler", "setup_exception_handlers"]
