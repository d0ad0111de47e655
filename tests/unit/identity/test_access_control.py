"""
Name: AccessControlService Tests

Responsibilities:
  - Cover the decision order: ownership override -> policy grant -> deny
  - Verify denials are returned as values and logged as warnings
  - Verify infrastructure failures propagate (they are not denials)
"""

import logging
from datetime import datetime, timezone
from uuid import uuid4

import pytest

from docshare.crosscutting.exceptions import DatabaseError
from docshare.domain.access_policy import AccessPolicy, ResourceType, SubjectType
from docshare.domain.permissions import ResourceKind
from docshare.identity.access_control import AccessControlService, AccessDeniedError
from docshare.identity.users import Actor, UserRole
from docshare.infrastructure.repositories.in_memory import (
    InMemoryAccessPolicyRepository,
)

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def _grant(policy_repo, *, user_id, document_id, actions, active=True):
    policy = AccessPolicy.create(
        name="grant",
        subject_type=SubjectType.USER,
        subject_id=user_id,
        resource_type=ResourceType.DOCUMENT,
        resource_id=document_id,
        actions=actions,
        is_active=active,
        now=NOW,
    )
    return policy_repo.save(policy)


class ExplodingPolicyRepository(InMemoryAccessPolicyRepository):
    def has_permission(self, *args, **kwargs):
        raise DatabaseError("connection refused")


@pytest.fixture
def document_id():
    return uuid4()


class TestOwnershipOverride:
    def test_owner_allowed_without_policies(self, access_control, owner, document_id):
        """R: Should allow the owner for allow-listed actions."""
        for action in ("read", "write", "delete", "grant", "revoke", "publish"):
            assert (
                access_control.require_permission(
                    owner,
                    ResourceKind.DOCUMENT,
                    action,
                    resource_owner_id=owner.user_id,
                    resource_id=document_id,
                )
                is None
            )

    def test_owner_override_does_not_query_policies(self, owner, document_id):
        """R: Should decide ownership before touching the repository."""
        service = AccessControlService(ExplodingPolicyRepository())
        assert (
            service.require_permission(
                owner,
                ResourceKind.DOCUMENT,
                "read",
                resource_owner_id=str(owner.user_id),
                resource_id=document_id,
            )
            is None
        )

    def test_owner_of_access_policy_kind(self, access_control, owner):
        assert (
            access_control.require_permission(
                owner,
                ResourceKind.ACCESS_POLICY,
                "revoke",
                resource_owner_id=owner.user_id,
            )
            is None
        )

    def test_owner_action_outside_allow_list_falls_through(
        self, access_control, owner
    ):
        denial = access_control.require_permission(
            owner,
            ResourceKind.ACCESS_POLICY,
            "read",
            resource_owner_id=owner.user_id,
        )
        assert isinstance(denial, AccessDeniedError)


class TestPolicyGrant:
    def test_user_policy_allows_granted_action(
        self, access_control, policy_repo, owner, recipient, document_id
    ):
        _grant(
            policy_repo,
            user_id=recipient.user_id,
            document_id=document_id,
            actions=["read"],
        )
        assert (
            access_control.require_permission(
                recipient,
                ResourceKind.DOCUMENT,
                "read",
                resource_owner_id=owner.user_id,
                resource_id=document_id,
            )
            is None
        )

    def test_policy_does_not_extend_to_other_actions(
        self, access_control, policy_repo, owner, recipient, document_id
    ):
        _grant(
            policy_repo,
            user_id=recipient.user_id,
            document_id=document_id,
            actions=["read"],
        )
        denial = access_control.require_permission(
            recipient,
            ResourceKind.DOCUMENT,
            "write",
            resource_owner_id=owner.user_id,
            resource_id=document_id,
        )
        assert denial == AccessDeniedError(
            user_id=str(recipient.user_id),
            resource_kind="document",
            action="write",
        )
        assert "not allowed to write document" in denial.message

    def test_inactive_policy_denies(
        self, access_control, policy_repo, owner, recipient, document_id
    ):
        _grant(
            policy_repo,
            user_id=recipient.user_id,
            document_id=document_id,
            actions=["read"],
            active=False,
        )
        assert (
            access_control.require_permission(
                recipient,
                ResourceKind.DOCUMENT,
                "read",
                resource_owner_id=owner.user_id,
                resource_id=document_id,
            )
            is not None
        )

    def test_role_and_global_policy(self, access_control, policy_repo, owner, document_id):
        """R: Should honour role-subject policies over every document."""
        policy_repo.save(
            AccessPolicy.create(
                name="Auditors read all",
                subject_type=SubjectType.ROLE,
                role_name="auditor",
                resource_type=ResourceType.GLOBAL,
                actions=["read"],
                now=NOW,
            )
        )
        auditor = Actor(user_id=uuid4(), roles=frozenset({"Auditor"}))
        plain = Actor(user_id=uuid4(), roles=frozenset({UserRole.USER.value}))

        kwargs = dict(resource_owner_id=owner.user_id, resource_id=document_id)
        assert (
            access_control.require_permission(
                auditor, ResourceKind.DOCUMENT, "read", **kwargs
            )
            is None
        )
        assert (
            access_control.require_permission(
                plain, ResourceKind.DOCUMENT, "read", **kwargs
            )
            is not None
        )

    def test_policies_ignored_without_resource_id(
        self, access_control, policy_repo, owner, recipient, document_id
    ):
        _grant(
            policy_repo,
            user_id=recipient.user_id,
            document_id=document_id,
            actions=["manage"],
        )
        assert (
            access_control.require_permission(
                recipient,
                ResourceKind.DOCUMENT,
                "manage",
                resource_owner_id=owner.user_id,
            )
            is not None
        )

    def test_policies_ignored_for_non_document_kinds(
        self, access_control, policy_repo, owner, recipient, document_id
    ):
        _grant(
            policy_repo,
            user_id=recipient.user_id,
            document_id=document_id,
            actions=["manage"],
        )
        assert (
            access_control.require_permission(
                recipient,
                ResourceKind.ACCESS_POLICY,
                "manage",
                resource_owner_id=owner.user_id,
                resource_id=document_id,
            )
            is not None
        )


class TestDeny:
    def test_stranger_denied_and_logged(
        self, access_control, owner, stranger, document_id, caplog
    ):
        """R: Should return a denial value and log a warning."""
        with caplog.at_level(logging.WARNING, logger="docshare"):
            denial = access_control.require_permission(
                stranger,
                ResourceKind.DOCUMENT,
                "read",
                resource_owner_id=owner.user_id,
                resource_id=document_id,
            )

        assert denial is not None
        assert denial.reason == "no_matching_grant"
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any(getattr(r, "resource_kind", None) == "document" for r in warnings)

    def test_malformed_resource_id_denies(self, access_control, owner, stranger):
        denial = access_control.require_permission(
            stranger,
            ResourceKind.DOCUMENT,
            "read",
            resource_owner_id=owner.user_id,
            resource_id="not-a-uuid",
        )
        assert denial is not None
        assert denial.reason == "malformed_identifier"

    def test_database_error_propagates(self, owner, stranger, document_id):
        """R: Should not turn an infrastructure failure into a denial."""
        service = AccessControlService(ExplodingPolicyRepository())
        with pytest.raises(DatabaseError):
            service.require_permission(
                stranger,
                ResourceKind.DOCUMENT,
                "read",
                resource_owner_id=owner.user_id,
                resource_id=document_id,
            )


class TestRoleVariant:
    def test_enforce_access_admin_allowed(self, access_control, admin):
        assert access_control.enforce_access(admin, ResourceKind.DOWNLOAD_TOKEN, "manage") is None

    def test_enforce_access_user_denied(self, access_control, stranger):
        denial = access_control.enforce_access(
            stranger, ResourceKind.DOWNLOAD_TOKEN, "manage"
        )
        assert denial is not None
        assert denial.reason == "role_not_allowed"
