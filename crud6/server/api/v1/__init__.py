"""Version 1 of the CRUD6 API, mounted under ``API_PREFIX``."""
