"""
Name: Role-Based `can` Tests

Responsibilities:
  - Verify rule order (admin, owner, unknown action, workspace read, roles)
  - Verify action synonyms and role inheritance
"""

from uuid import uuid4

import pytest

from docshare.identity.rbac import (
    DEFAULT_ROLES,
    Action,
    Role,
    can,
    normalize_action,
    roles_allow,
)
from docshare.identity.users import Actor, UserRole, normalize_roles

pytestmark = pytest.mark.unit


def _actor(*roles, workspace_id=None) -> Actor:
    return Actor(user_id=uuid4(), roles=frozenset(roles), workspace_id=workspace_id)


class TestNormalizeAction:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("view", Action.READ),
            ("GET", Action.READ),
            ("create", Action.WRITE),
            ("publish", Action.WRITE),
            ("edit", Action.UPDATE),
            ("remove", Action.DELETE),
            (" manage ", Action.MANAGE),
        ],
    )
    def test_synonyms(self, raw, expected):
        assert normalize_action(raw) is expected

    def test_unknown_is_none(self):
        assert normalize_action("teleport") is None
        assert normalize_action(None) is None


class TestCan:
    def test_admin_allowed_any_action(self):
        """R: Should allow admins every action, including ones outside the vocabulary."""
        actor = _actor(UserRole.ADMIN.value)
        assert can(actor, "document", "share") is True
        assert can(actor, "document", "teleport") is True

    def test_owner_allowed_any_action(self):
        """R: Should allow owners every action on their own resource."""
        actor = _actor(UserRole.USER.value)
        assert can(actor, "document", "grant", resource_owner_id=actor.user_id) is True
        assert can(actor, "document", "share", resource_owner_id=str(actor.user_id))

    def test_unknown_action_denied_for_non_owner(self, caplog):
        """R: Should deny unknown actions to non-admin non-owners instead of assuming read."""
        editor = _actor(UserRole.EDITOR.value)
        workspace = uuid4()
        member = _actor(UserRole.VIEWER.value, workspace_id=workspace)

        assert can(editor, "document", "teleport") is False
        assert can(member, "document", "share", workspace_id=workspace) is False
        assert can(editor, "document", "grant", resource_owner_id=uuid4()) is False
        assert "desconocida" in caplog.text

    def test_admin_allowed_everything(self):
        actor = _actor(UserRole.ADMIN.value)
        for action in ("read", "write", "update", "delete", "manage"):
            assert can(actor, "document", action)

    def test_owner_allowed(self):
        actor = _actor(UserRole.USER.value)
        assert can(actor, "document", "delete", resource_owner_id=actor.user_id)
        assert can(actor, "document", "delete", resource_owner_id=str(actor.user_id))

    def test_same_workspace_read_only(self):
        workspace = uuid4()
        actor = _actor(UserRole.USER.value, workspace_id=workspace)
        assert can(actor, "document", "view", workspace_id=workspace)
        assert not can(actor, "document", "write", workspace_id=workspace)
        assert not can(actor, "document", "read", workspace_id=uuid4())

    def test_role_table(self):
        viewer = _actor(UserRole.VIEWER.value)
        editor = _actor(UserRole.EDITOR.value)

        assert can(viewer, "document", "read")
        assert not can(viewer, "document", "write")
        assert can(editor, "document", "read")
        assert can(editor, "document", "edit")
        assert not can(editor, "document", "delete")
        assert not can(editor, "downloadToken", "manage")

    def test_plain_user_has_no_role_grants(self):
        assert not can(_actor(UserRole.USER.value), "document", "read")


class TestRoleInheritance:
    def test_admin_inherits_viewer_read(self):
        assert DEFAULT_ROLES["admin"].allows(Action.READ, DEFAULT_ROLES)

    def test_inheritance_cycle_terminates(self):
        registry = {
            "a": Role(name="a", inherits_from="b"),
            "b": Role(name="b", inherits_from="a"),
        }
        assert roles_allow(["a"], Action.READ, registry) is False

    def test_roles_normalized(self):
        assert normalize_roles([" Editor ", UserRole.ADMIN, ""]) == frozenset(
            {"editor", "admin"}
        )
        assert _actor("ADMIN").is_admin
