"""
Monitoring and Tracing Configuration Module.

Optional Logfire integration for the CRUD6 server:
- FastAPI instrumentation (one span per request)
- SQLAlchemy instrumentation of every connection's engine
- A structured event per API request, with its status and duration
- Error events raised from the global exception handler

Tracing stays off unless ``LOGFIRE_ENABLED`` is set and ``LOGFIRE_TOKEN`` holds
a project write token. When off, every helper here is a no-op.
"""

from typing import Any, Dict, Optional

import logfire
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from crud6.core.logging_config import get_logger
from crud6.server.core.config import settings

logger = get_logger(__name__)

_state = {"enabled": False}


def is_enabled() -> bool:
    return _state["enabled"]


def initialize_logfire(app: Optional[FastAPI] = None) -> bool:
    """
    Configure Logfire and instrument the application.

    Args:
        app: FastAPI application to instrument (optional)

    Returns:
        True when Logfire was configured
    """
    monitoring = settings.monitoring
    if not monitoring.enabled:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not monitoring.token:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set. Monitoring stays off.")
        return False

    try:
        logfire.configure(
            token=monitoring.token,
            service_name=monitoring.service_name,
            service_version=monitoring.service_version,
            environment=monitoring.environment,
            console=False,
            sampling=logfire.SamplingOptions(head=monitoring.sample_rate),
        )
    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)
        return False
    _state["enabled"] = True

    if monitoring.trace_fastapi and app is not None:
        try:
            logfire.instrument_fastapi(app)
            logger.info("Logfire: FastAPI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    logger.info(
        f"Logfire monitoring initialized: service={monitoring.service_name}, environment={monitoring.environment}"
    )
    return True


def instrument_engine(engine: AsyncEngine) -> None:
    """Trace the queries of a connection's engine."""
    if not is_enabled() or not settings.monitoring.trace_sqlalchemy:
        return
    try:
        logfire.instrument_sqlalchemy(engine=engine.sync_engine)
    except Exception as e:
        logger.warning(f"Failed to instrument SQLAlchemy engine {engine.url.render_as_string()}: {e}")


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not is_enabled():
        return
    logfire.info(
        "API request completed",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


def log_error(error_type: str, error_message: str, context: Optional[Dict[str, Any]] = None) -> None:
    if not is_enabled():
        return
    logfire.error("{error_type}: {error_message}", error_type=error_type, error_message=error_message, **(context or {}))
