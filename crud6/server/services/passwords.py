"""Password hashing for ``password`` fields."""

from __future__ import annotations

from typing import Any, Dict, Mapping

import bcrypt

from crud6.core.exceptions import ValidationException
from crud6.field_types import PASSWORD_MAX_BYTES


def hash_password(password: str) -> str:
    """Hash ``password`` with a fresh bcrypt salt.

    Raises:
        ValidationException: If the password is longer than bcrypt accepts
    """
    encoded = password.encode("utf-8")
    if len(encoded) > PASSWORD_MAX_BYTES:
        raise ValidationException([f"Password must be at most {PASSWORD_MAX_BYTES} bytes long."])
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def hash_password_fields(fields: Mapping[str, Mapping[str, Any]], data: Dict[str, Any]) -> Dict[str, Any]:
    """Hash every non-empty password field of ``data`` in place.

    Empty password values are removed so an update keeps the stored hash.
    """
    for name, field in fields.items():
        if field.get("type") != "password" or name not in data:
            continue
        value = data[name]
        if value is None or value == "":
            del data[name]
        else:
            data[name] = hash_password(str(value))
    return data
