"""
Context filtering of schemas.

Clients rarely need a whole schema: a list view needs column metadata, a form
needs validation rules. ``SchemaFilter`` trims a schema down to what one
context (or a comma-separated set of contexts) needs.

Contexts: ``list``, ``create``, ``edit``, ``form`` (create + edit), ``detail``,
``meta`` (no fields) and ``full`` (unfiltered).
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from crud6.core.logging_config import debug_log, get_logger

logger = get_logger(__name__)

KNOWN_CONTEXTS = ("meta", "list", "create", "edit", "form", "detail")

_SMARTLOOKUP_KEYS = ("lookup_model", "lookup_id", "lookup_desc", "model", "id", "desc")
_FORM_OPTIONAL_KEYS = ("validation", "placeholder", "description", "default", "icon", "rows", "show_in")
_DETAIL_SCHEMA_KEYS = ("detail", "details", "actions", "relationships", "detail_editable", "render_mode", "title_field")


class SchemaFilter:
    def filter_for_context(self, schema: Dict[str, Any], context: Optional[str] = None) -> Dict[str, Any]:
        """Return the part of ``schema`` a context needs.

        Args:
            schema: Fully processed schema
            context: Context name, comma-separated context names, ``full`` or None

        Returns:
            Filtered schema. Unknown single contexts return the full schema.
        """
        debug_log(logger, "Filtering schema for context", {"model": schema.get("model"), "context": context})
        if context is None or context == "full":
            return schema

        if "," in context:
            contexts = [name.strip() for name in context.split(",") if name.strip()]
            return self._filter_multiple(schema, contexts)

        data = self.context_data(schema, context)
        if data is None:
            return schema
        return {**self._base_metadata(schema), **data}

    def _filter_multiple(self, schema: Dict[str, Any], contexts: List[str]) -> Dict[str, Any]:
        filtered = self._base_metadata(schema)
        if "title_field" in schema:
            filtered["title_field"] = schema["title_field"]
        if "actions" in schema:
            filtered["actions"] = schema["actions"]

        filtered["contexts"] = {}
        for context in contexts:
            data = self.context_data(schema, context)
            if data is not None:
                filtered["contexts"][context] = data
        return filtered

    @staticmethod
    def _base_metadata(schema: Dict[str, Any]) -> Dict[str, Any]:
        model = schema["model"]
        title = schema.get("title", model.capitalize())
        base = {
            "model": model,
            "title": title,
            "singular_title": schema.get("singular_title", title),
            "primary_key": schema.get("primary_key", "id"),
        }
        for key in ("description", "permissions"):
            if key in schema:
                base[key] = schema[key]
        return base

    def context_data(self, schema: Dict[str, Any], context: str) -> Optional[Dict[str, Any]]:
        if context == "meta":
            return {}
        if context == "list":
            return self._list_data(schema)
        if context in ("create", "edit"):
            return self._form_data(schema, context)
        if context == "form":
            return self._combined_form_data(schema)
        if context == "detail":
            return self._detail_data(schema)
        return None

    @staticmethod
    def _list_data(schema: Dict[str, Any]) -> Dict[str, Any]:
        data: Dict[str, Any] = {"fields": {}, "default_sort": schema.get("default_sort", {})}
        for key, field in schema["fields"].items():
            show_in = field.get("show_in")
            visible = "list" in show_in if show_in is not None else field.get("listable", False)
            if not visible:
                continue

            entry = {
                "type": field.get("type", "string"),
                "label": field.get("label", key),
                "sortable": field.get("sortable", False),
                "filterable": field.get("filterable", False),
            }
            for optional in ("width", "field_template"):
                if optional in field:
                    entry[optional] = field[optional]
            if "filter_type" in field and field.get("filterable", False):
                entry["filter_type"] = field["filter_type"]
            data["fields"][key] = entry

        if "actions" in schema:
            data["actions"] = schema["actions"]
        return data

    @staticmethod
    def _form_data(schema: Dict[str, Any], context: str) -> Dict[str, Any]:
        data: Dict[str, Any] = {"fields": {}}
        for key, field in schema["fields"].items():
            show_in = field.get("show_in")
            if isinstance(show_in, list):
                visible = context in show_in
            else:
                visible = field.get("editable", True) is not False
            if not visible:
                continue

            entry = {
                "type": field.get("type", "string"),
                "label": field.get("label", key),
                "required": field.get("required", False),
                "editable": field.get("editable", True),
            }
            for optional in _FORM_OPTIONAL_KEYS:
                if optional in field:
                    entry[optional] = field[optional]
            if field.get("type") == "smartlookup":
                for lookup_key in _SMARTLOOKUP_KEYS:
                    if lookup_key in field:
                        entry[lookup_key] = field[lookup_key]
            data["fields"][key] = entry
        return data

    def _combined_form_data(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(self._form_data(schema, "create")["fields"])
        for key, entry in self._form_data(schema, "edit")["fields"].items():
            fields.setdefault(key, entry)
        return {"fields": fields}

    @staticmethod
    def _detail_data(schema: Dict[str, Any]) -> Dict[str, Any]:
        data: Dict[str, Any] = {"fields": {}}
        for key, field in schema["fields"].items():
            show_in = field.get("show_in")
            visible = "detail" in show_in if show_in is not None else field.get("viewable", True)
            if not visible:
                continue

            field_type = field.get("type", "string")
            readonly = field.get("readonly", field_type == "password")
            entry = {
                "type": field_type,
                "label": field.get("label", key),
                "editable": field.get("editable", not readonly),
                "readonly": readonly,
            }
            for optional in ("description", "field_template", "default"):
                if optional in field:
                    entry[optional] = field[optional]
            data["fields"][key] = entry

        for key in _DETAIL_SCHEMA_KEYS:
            if key in schema:
                data[key] = schema[key]
        return data
