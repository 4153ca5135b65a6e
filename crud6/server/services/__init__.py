"""
Server services.

- deps.py: FastAPI dependencies (schema service, request context, session)
- auth.py: Current user dependency and permission checks
- records.py: Record writes, relationship actions and cascade deletes
- custom_actions.py: Custom action handler registry
- passwords.py: bcrypt hashing for password fields
"""
