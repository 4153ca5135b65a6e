"""
CRUD6 Server Package.

This package contains the web server implementation of CRUD6.
It includes the API definition, configuration, exception handling and the
service layer between the endpoints and the dynamic models.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and constants.
    exception_handlers: JSON error responses.
    middleware: Request timing and logging.
    schemas: Pydantic schemas for fixed-shape requests and responses.
    services: Dependencies, access control and record operations.
"""
