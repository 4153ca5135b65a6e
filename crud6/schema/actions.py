"""
Schema action management.

Adds the default create/edit/delete actions a schema is entitled to (by its
``permissions``), fills in confirmation settings for toggle actions and
filters actions by the UI scope they belong to.
"""

from __future__ import annotations

from typing import Any, Dict, List

from crud6.core.logging_config import debug_log, get_logger

from .validator import SchemaValidator

logger = get_logger(__name__)


class SchemaActionManager:
    def __init__(self, validator: SchemaValidator) -> None:
        self.validator = validator

    def add_default_actions(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Prepend the default actions allowed by the schema's permissions.

        Existing actions with the same key are kept as they are. Setting
        ``"default_actions": false`` in the schema disables this step entirely.
        """
        if schema.get("default_actions") is False:
            debug_log(logger, "Default actions disabled", {"model": schema.get("model")})
            return schema

        schema["actions"] = self.normalize_toggle_actions(list(schema.get("actions") or []), schema)
        existing = {action.get("key") for action in schema["actions"]}
        permissions = schema.get("permissions") or {}

        defaults: List[Dict[str, Any]] = []
        if "create_action" not in existing and self.validator.has_permission(schema, "create"):
            defaults.append(
                {
                    "key": "create_action",
                    "label": "CRUD6.CREATE",
                    "icon": "plus",
                    "type": "form",
                    "style": "primary",
                    "scope": "list",
                    "permission": permissions["create"],
                    "modal_config": {"type": "form", "title": "CRUD6.CREATE"},
                }
            )
        if "edit_action" not in existing and self.validator.has_permission(schema, "update"):
            defaults.append(
                {
                    "key": "edit_action",
                    "label": "CRUD6.EDIT",
                    "icon": "pen-to-square",
                    "type": "form",
                    "style": "primary",
                    "scope": "detail",
                    "permission": permissions["update"],
                    "modal_config": {"type": "form", "title": "CRUD6.EDIT"},
                }
            )
        if "delete_action" not in existing and self.validator.has_permission(schema, "delete"):
            defaults.append(
                {
                    "key": "delete_action",
                    "label": "CRUD6.DELETE",
                    "icon": "trash",
                    "type": "delete",
                    "style": "danger",
                    "scope": "detail",
                    "permission": permissions["delete"],
                    "confirm": "CRUD6.DELETE_CONFIRM",
                    "modal_config": {"type": "confirm", "buttons": "yes_no", "warning": "WARNING_CANNOT_UNDONE"},
                }
            )

        if defaults:
            schema["actions"] = defaults + schema["actions"]
            debug_log(
                logger,
                "Default actions added",
                {"model": schema.get("model"), "actions_added": [action["key"] for action in defaults]},
            )
        return schema

    @staticmethod
    def normalize_toggle_actions(actions: List[Dict[str, Any]], schema: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Give every toggle ``field_update`` action a confirmation dialog."""
        fields = schema.get("fields") or {}
        for action in actions:
            if action.get("type") != "field_update" or not action.get("toggle"):
                continue
            field_name = action.get("field")
            if not field_name:
                continue

            field_label = (fields.get(field_name) or {}).get("label") or field_name.replace("_", " ").capitalize()
            if "confirm" not in action:
                action.setdefault("field_label", field_label)
                action["confirm"] = "CRUD6.TOGGLE_CONFIRM"

            modal_config = action.get("modal_config")
            if modal_config is None:
                action["modal_config"] = {"type": "confirm", "buttons": "yes_no"}
            else:
                modal_config.setdefault("type", "confirm")
        return actions

    @staticmethod
    def filter_actions_by_scope(actions: List[Dict[str, Any]], scope: str) -> List[Dict[str, Any]]:
        """Keep the actions declared for ``scope``. Actions without a scope are dropped."""
        filtered = []
        for action in actions:
            action_scope = action.get("scope")
            if action_scope is None:
                continue
            if isinstance(action_scope, list) and scope in action_scope:
                filtered.append(action)
            elif action_scope == scope:
                filtered.append(action)
        return filtered
