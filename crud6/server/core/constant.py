PROJECT_NAME: str = "CRUD6"
API_PREFIX: str = "/api/crud6"
