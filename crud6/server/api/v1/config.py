"""
Client configuration endpoint.

The admin frontend reads this once to decide whether to emit its own debug
logging.
"""

from fastapi import APIRouter

from crud6.server.core.config import settings
from crud6.server.schemas import ConfigResponse

router = APIRouter()


@router.get(
    "/config",
    response_model=ConfigResponse,
    summary="Get Client Configuration",
    description="Return the configuration flags the frontend needs, currently only the debug mode switch.",
)
async def get_config() -> ConfigResponse:
    return ConfigResponse(debug_mode=settings.debug_mode)
