"""Unit tests for permission checks."""

from unittest.mock import patch

import pytest

from crud6.core.exceptions import ForbiddenException
from crud6.server.services.auth import CurrentUser, authorize, get_current_user, permission_for

USERS_SCHEMA = {"model": "users", "permissions": {"read": "uri_users", "update": "update_user_field"}}


class TestCurrentUser:
    def test_master_can_everything(self):
        assert CurrentUser(is_master=True).can("anything")

    def test_granted_permissions(self):
        user = CurrentUser(id=3, user_name="alex", permissions=frozenset({"uri_users"}))

        assert user.can("uri_users")
        assert not user.can("delete_user")

    @pytest.mark.asyncio
    async def test_default_user_is_anonymous_master(self):
        user = await get_current_user()

        assert user.user_name == "anonymous"
        assert user.is_master is True


class TestPermissions:
    def test_schema_permission(self):
        assert permission_for(USERS_SCHEMA, "read") == "uri_users"

    def test_default_permission(self):
        assert permission_for(USERS_SCHEMA, "delete") == "crud6.users.delete"
        assert permission_for({"model": "groups"}, "create") == "crud6.groups.create"

    def test_authorize_allows(self):
        authorize(CurrentUser(permissions=frozenset({"uri_users"})), USERS_SCHEMA, "read")

    def test_authorize_denies_and_logs(self):
        user = CurrentUser(user_name="alex", permissions=frozenset({"uri_users"}))

        with patch("crud6.server.services.auth.logger") as mock_logger:
            with pytest.raises(ForbiddenException):
                authorize(user, USERS_SCHEMA, "update")

        assert "update_user_field" in mock_logger.warning.call_args[0][0]

    def test_explicit_permission_overrides_schema(self):
        user = CurrentUser(permissions=frozenset({"toggle_users"}))

        authorize(user, USERS_SCHEMA, "update", permission="toggle_users")
