"""
Handler for user-facing CRUD6 errors.

Turns a ``CRUD6Exception`` (or subclass) into a JSON body with the status
code the exception declares.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from crud6.core.exceptions import CRUD6Exception
from crud6.core.logging_config import get_logger

logger = get_logger(__name__)


async def crud6_exception_handler(request: Request, exc: CRUD6Exception) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.description}")
    else:
        logger.info(
            f"{type(exc).__name__} ({exc.status_code}) in {request.method} {request.url.path}: {exc.description}"
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
