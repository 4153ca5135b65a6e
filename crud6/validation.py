"""
Request data validation against schema field rules.

Rules come from each field's ``validation`` object plus the implicit rules
of its field type (``email``, ``url``, ``integer``, ``numeric``, ``date``,
``datetime`` and the password byte limit). Supported rules: ``required``,
``length.min/max``, ``email``, ``url``, ``integer``, ``numeric``, ``date``,
``datetime``, ``max_bytes``, ``regex``, ``min``, ``max`` and ``unique``.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from crud6.core.exceptions import ValidationException
from crud6.core.logging_config import debug_log, get_logger
from crud6.model import CRUD6Model, parse_date, parse_datetime
from crud6.schema.translator import Translator

logger = get_logger(__name__)

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_URL = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "") or value == []


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and re.fullmatch(r"-?\d+", value.strip()) is not None


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(str(value))
    except ValueError:
        return False
    return True


def _is_temporal(value: Any, parse: Callable[[str], Any], kind: type) -> bool:
    if isinstance(value, kind):
        return True
    if not isinstance(value, str):
        return False
    try:
        parse(value)
    except ValueError:
        return False
    return True


class RequestValidator:
    def __init__(self, translator: Translator) -> None:
        self.translator = translator

    def rules_for(self, model: CRUD6Model, field: Mapping[str, Any]) -> Dict[str, Any]:
        rules = dict(model.field_types.get_validation_rules(field.get("type", "string")))
        rules.update(field.get("validation") or {})
        if field.get("required"):
            rules.setdefault("required", True)
        return rules

    async def validate(
        self,
        session: AsyncSession,
        model: CRUD6Model,
        data: Mapping[str, Any],
        fields: Optional[Iterable[str]] = None,
        record_id: Any = None,
    ) -> None:
        """Validate ``data`` and raise with every failure found.

        Args:
            session: Session used by ``unique`` checks
            model: Configured model of the target schema
            data: Request payload
            fields: Field names to check. Defaults to every schema field (create);
                updates pass the submitted keys.
            record_id: Record excluded from ``unique`` checks

        Raises:
            ValidationException: If any rule fails
        """
        errors: List[str] = []
        names = list(fields) if fields is not None else list(model.fields)
        for name in names:
            field = model.fields.get(name)
            if field is None or field.get("auto_increment") or field.get("computed"):
                continue
            errors.extend(await self._check_field(session, model, name, field, data.get(name), record_id))

        if errors:
            debug_log(logger, "Validation failed", {"model": model.schema.get("model"), "errors": errors})
            raise ValidationException(errors)

    async def _check_field(
        self,
        session: AsyncSession,
        model: CRUD6Model,
        name: str,
        field: Mapping[str, Any],
        value: Any,
        record_id: Any,
    ) -> List[str]:
        rules = self.rules_for(model, field)
        label = field.get("label", name)

        def message(key: str, **params: Any) -> str:
            return self.translator.translate(f"VALIDATION.{key}", {"label": label, **params})

        if _is_empty(value):
            return [message("REQUIRED")] if rules.get("required") else []

        errors: List[str] = []
        length = rules.get("length")
        if isinstance(length, Mapping) and isinstance(value, str):
            if length.get("min") is not None and len(value) < int(length["min"]):
                errors.append(message("LENGTH_MIN", min=length["min"]))
            if length.get("max") is not None and len(value) > int(length["max"]):
                errors.append(message("LENGTH_MAX", max=length["max"]))

        if rules.get("email") and not _EMAIL.match(str(value)):
            errors.append(message("EMAIL"))
        if rules.get("url") and not _URL.match(str(value)):
            errors.append(message("URL"))
        if rules.get("integer") and not _is_integer(value):
            errors.append(message("INTEGER"))
        if rules.get("numeric") and not _is_numeric(value):
            errors.append(message("NUMERIC"))
        if rules.get("date") and not _is_temporal(value, parse_date, date):
            errors.append(message("DATE"))
        if rules.get("datetime") and not _is_temporal(value, parse_datetime, datetime):
            errors.append(message("DATETIME"))
        max_bytes = rules.get("max_bytes")
        if max_bytes is not None and len(str(value).encode("utf-8")) > int(max_bytes):
            errors.append(message("MAX_BYTES", max=max_bytes))

        regex = rules.get("regex")
        if regex:
            pattern = regex.get("pattern") if isinstance(regex, Mapping) else regex
            if pattern and re.search(pattern, str(value)) is None:
                errors.append(message("REGEX"))

        if _is_numeric(value):
            if rules.get("min") is not None and float(value) < float(rules["min"]):
                errors.append(message("MIN", min=rules["min"]))
            if rules.get("max") is not None and float(value) > float(rules["max"]):
                errors.append(message("MAX", max=rules["max"]))

        if rules.get("unique") and model.has_column(name) and not errors:
            if await model.exists(session, name, value, exclude_id=record_id):
                errors.append(message("UNIQUE", value=value))
        return errors
