"""
Schema normalization.

Rewrites the many accepted spellings of a field definition into the single
canonical form the rest of the package reads. The passes run in a fixed
order: ORM-style attributes, lookup attributes, visibility flags and boolean
types.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List

from crud6.core.logging_config import debug_log, get_logger

logger = get_logger(__name__)

_LEGACY_BOOLEAN = re.compile(r"^boolean-(tgl|chk|sel|yn)$")
_BOOLEAN_UI = {"tgl": "toggle", "chk": "checkbox", "sel": "select", "yn": "select"}


class SchemaNormalizer:
    def normalize(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        schema = self.normalize_orm_attributes(schema)
        schema = self.normalize_lookup_attributes(schema)
        schema = self.normalize_visibility_flags(schema)
        schema = self.normalize_boolean_types(schema)
        debug_log(logger, "Schema normalized", {"model": schema.get("model")})
        return schema

    @staticmethod
    def _fields(schema: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        fields = schema.get("fields")
        return fields if isinstance(fields, dict) else {}

    def normalize_orm_attributes(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Map Laravel/Sequelize/TypeORM/Prisma style attributes onto CRUD6 keys."""
        for field in self._fields(schema).values():
            if "nullable" in field and "required" not in field:
                field["required"] = not field["nullable"]
            if "required" in field and "nullable" not in field:
                field["nullable"] = not field["required"]

            if "autoIncrement" in field and "auto_increment" not in field:
                field["auto_increment"] = field["autoIncrement"]

            if "primaryKey" in field and "primary" not in field:
                field["primary"] = field["primaryKey"]

            if "unique" in field and "unique" not in (field.get("validation") or {}):
                field.setdefault("validation", {})["unique"] = field["unique"]

            if "length" in field and "length" not in (field.get("validation") or {}):
                field.setdefault("validation", {})["length"] = {"max": field["length"]}

            if "validate" in field and "validation" not in field:
                field["validation"] = field["validate"]

            references = field.get("references")
            if isinstance(references, dict):
                field.setdefault(
                    "lookup",
                    {
                        "model": references.get("model", references.get("table")),
                        "id": references.get("key", references.get("id", "id")),
                        "desc": references.get("display", references.get("desc", "name")),
                    },
                )
                if field.get("type") in (None, "integer") and ("display" in references or "desc" in references):
                    field["type"] = "smartlookup"

            ui = field.get("ui")
            if isinstance(ui, dict):
                for key in ("label", "show_in", "sortable", "filterable"):
                    if key in ui and key not in field:
                        field[key] = ui[key]
                if "widget" in ui and field.get("type") == "boolean":
                    field["ui"] = ui["widget"]
                elif ui.get("type") == "lookup" and field.get("type") in (None, "integer"):
                    field["type"] = "smartlookup"

            if "defaultValue" in field and "default" not in field:
                field["default"] = field["defaultValue"]
        return schema

    def normalize_lookup_attributes(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Flatten smartlookup configuration into ``lookup_model/lookup_id/lookup_desc``."""
        for field in self._fields(schema).values():
            if field.get("type") != "smartlookup":
                continue

            lookup = field.get("lookup")
            if isinstance(lookup, dict):
                for key in ("model", "id", "desc"):
                    if key in lookup:
                        field.setdefault(f"lookup_{key}", lookup[key])

            for key in ("model", "id", "desc"):
                if f"lookup_{key}" not in field and key in field:
                    field[f"lookup_{key}"] = field[key]
        return schema

    def normalize_visibility_flags(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Make ``show_in`` and the listable/editable/viewable flags agree."""
        for field in self._fields(schema).values():
            show_in = field.get("show_in")
            if isinstance(show_in, list):
                expanded: List[str] = []
                for context in show_in:
                    expanded.extend(["create", "edit"] if context == "form" else [context])
                field["show_in"] = list(dict.fromkeys(expanded))
                field["listable"] = "list" in field["show_in"]
                field["editable"] = "create" in field["show_in"] or "edit" in field["show_in"]
                field["viewable"] = "detail" in field["show_in"]
                continue

            listable = field.get("listable", True)
            editable = field.get("editable", True)
            viewable = field.get("viewable", True)

            contexts: List[str] = []
            if listable:
                contexts.append("list")
            if editable:
                contexts.extend(["create", "edit"])
            # Passwords are never shown in the detail view
            if viewable and field.get("type", "string") != "password":
                contexts.append("detail")

            field["show_in"] = contexts
            field["listable"] = listable
            field["editable"] = editable
            field["viewable"] = viewable
        return schema

    def normalize_boolean_types(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Collapse ``boolean-<ui>`` types into ``boolean`` plus a ``ui`` hint."""
        for field in self._fields(schema).values():
            field_type = field.get("type", "string")
            match = _LEGACY_BOOLEAN.match(field_type)
            if match:
                field["type"] = "boolean"
                field.setdefault("ui", _BOOLEAN_UI.get(match.group(1), "checkbox"))
            elif field_type == "boolean" and "ui" not in field:
                field["ui"] = "checkbox"
        return schema
