"""
Name: AuditLogger Tests

Responsibilities:
  - Verify event shape (actor, action, target, outcome, context)
  - Verify secrets are masked in metadata
  - Verify persistence failures never reach the caller
"""

from uuid import uuid4

import pytest

from docshare.audit import AuditLogger, AuditOutcome
from docshare.application.usecases.access import GrantAccessInput, GrantAccessUseCase
from docshare.context import operation_context
from docshare.identity.users import Actor

pytestmark = pytest.mark.unit


class BrokenAuditRepository:
    def __init__(self):
        self.calls = 0

    def record_event(self, event):
        self.calls += 1
        raise RuntimeError("audit store down")

    def list_events(self, **kwargs):
        return []


class TestAuditLogger:
    def test_access_control_event_shape(self, audit_logger, audit_repo, owner, clock):
        resource_id = uuid4()
        target = uuid4()

        audit_logger.log_access_control_change(
            "access_policy_granted",
            resource_id=resource_id,
            action="grant",
            actor=owner,
            target=target,
            outcome=AuditOutcome.SUCCESS,
            details={"actions": frozenset({"write", "read"})},
        )

        (event,) = audit_repo.list_events()
        assert event.actor == f"user:{owner.user_id}"
        assert event.action == "access_policy_granted"
        assert event.target_id == resource_id
        assert event.created_at == clock.now
        assert event.outcome == "success"
        assert event.metadata["category"] == "access_control"
        assert event.metadata["target"] == str(target)
        assert event.metadata["details"]["actions"] == ["read", "write"]

    def test_system_actor_and_context(self, audit_logger, audit_repo):
        with operation_context(request_id="req-1"):
            audit_logger.log_security_event(
                "tokens_cleaned", actor=None, outcome="success"
            )

        (event,) = audit_repo.list_events()
        assert event.actor == "system"
        assert event.metadata["request_id"] == "req-1"
        assert event.metadata["category"] == "security"

    def test_correlation_id_from_actor(self, audit_logger, audit_repo):
        actor = Actor(user_id=uuid4(), correlation_id="corr-42")
        audit_logger.log_security_event("token_created", actor=actor, outcome="success")
        assert audit_repo.list_events()[0].metadata["correlation_id"] == "corr-42"

    def test_secret_keys_masked(self, audit_logger, audit_repo, owner):
        audit_logger.log_security_event(
            "token_created",
            actor=owner,
            outcome=AuditOutcome.SUCCESS,
            details={"token": "f" * 64, "token_id": "abc"},
        )
        details = audit_repo.list_events()[0].metadata["details"]
        assert details["token"] == "***"
        assert details["token_id"] == "abc"

    def test_persistence_failure_is_swallowed(self, owner, clock):
        repo = BrokenAuditRepository()
        audit_logger = AuditLogger(repo, clock=clock)

        audit_logger.log_security_event("token_created", actor=owner, outcome="success")

        assert repo.calls == 1

    def test_use_case_succeeds_when_audit_store_fails(
        self, document_repo, policy_repo, access_control, clock, document, owner, recipient
    ):
        """R: Should not let an audit failure change the business result."""
        use_case = GrantAccessUseCase(
            document_repo,
            policy_repo,
            access_control,
            AuditLogger(BrokenAuditRepository(), clock=clock),
            clock=clock,
        )
        result = use_case.execute(
            GrantAccessInput(document.id, recipient.user_id, ["read"]), owner
        )
        assert result.error is None
        assert policy_repo.find_by_user_and_resource(recipient.user_id, document.id)

    def test_without_repository_only_logs(self, owner, caplog):
        AuditLogger(None).log_security_event(
            "token_created", actor=owner, outcome="success"
        )
        assert any(
            getattr(r, "audit_event", None) == "token_created" for r in caplog.records
        )
