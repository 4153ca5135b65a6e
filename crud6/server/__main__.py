"""Run the CRUD6 server with uvicorn: ``python -m crud6.server`` or ``crud6-server``."""

import uvicorn

from .core.config import settings


def main() -> None:
    uvicorn.run(
        "crud6.server.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
