"""Core infrastructure shared by the CRUD6 server and tooling: logging, errors and database access."""
