"""
===============================================================================
USE CASE: Revoke Access
===============================================================================

Elimina las políticas de un usuario sobre un documento.

Reglas:
  - El documento debe existir.
  - Solo el dueño puede revocar (acción "revoke" sobre accessPolicy).
  - Idempotente: si no había nada para borrar, revoked=0 y no es error.
===============================================================================
"""

from __future__ import annotations

from ....audit import AuditLogger, AuditOutcome
from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import observe_usecase_duration
from ....crosscutting.timing import Timer
from ....domain.errors import ValidationError
from ....domain.ids import parse_document_id, parse_user_id
from ....domain.permissions import ResourceKind
from ....domain.repositories import AccessPolicyRepository, DocumentRepository
from ....identity.access_control import AccessControlService
from ....identity.users import Actor
from .access_results import (
    AccessErrorCode,
    RevokeAccessInput,
    RevokeAccessResult,
    access_error,
)

EVENT_REVOKED = "access_policy_revoked"
EVENT_REVOKE_FAILED = "access_policy_revoke_failed"


class RevokeAccessUseCase:
    """Revoca el acceso de un usuario a un documento."""

    def __init__(
        self,
        document_repository: DocumentRepository,
        policy_repository: AccessPolicyRepository,
        access_control: AccessControlService,
        audit_logger: AuditLogger,
    ) -> None:
        self._documents = document_repository
        self._policies = policy_repository
        self._access = access_control
        self._audit = audit_logger

    def execute(
        self, input_data: RevokeAccessInput, actor: Actor
    ) -> RevokeAccessResult:
        with Timer() as timer:
            try:
                result = self._revoke(input_data, actor)
            except DatabaseError as exc:
                logger.error(
                    "RevokeAccessUseCase: database failure",
                    extra={"error_id": exc.error_id},
                )
                result = self._fail(
                    input_data,
                    actor,
                    AccessErrorCode.DATABASE_ERROR,
                    "Failed to revoke access.",
                )
        observe_usecase_duration("revoke_access", timer.elapsed_seconds)
        return result

    def _revoke(
        self, input_data: RevokeAccessInput, actor: Actor
    ) -> RevokeAccessResult:
        try:
            document_id = parse_document_id(input_data.document_id)
            user_id = parse_user_id(input_data.revoked_from, "revoked_from")
        except ValidationError as exc:
            return self._fail(
                input_data, actor, AccessErrorCode.VALIDATION_ERROR, exc.message
            )

        document = self._documents.get_document(document_id)
        if document is None:
            return self._fail(
                input_data, actor, AccessErrorCode.NOT_FOUND, "Document not found."
            )

        denial = self._access.require_permission(
            actor,
            ResourceKind.ACCESS_POLICY,
            "revoke",
            resource_owner_id=document.owner_id,
        )
        if denial is not None:
            return self._fail(
                input_data, actor, AccessErrorCode.FORBIDDEN, "Access denied."
            )

        revoked = self._policies.delete_by_user_and_resource(document_id, user_id)
        self._audit.log_access_control_change(
            EVENT_REVOKED,
            resource_id=document_id,
            action="revoke",
            actor=actor,
            target=user_id,
            outcome=AuditOutcome.SUCCESS,
            details={"revoked": revoked},
        )
        return RevokeAccessResult(revoked=revoked)

    def _fail(
        self,
        input_data: RevokeAccessInput,
        actor: Actor,
        code: AccessErrorCode,
        message: str,
    ) -> RevokeAccessResult:
        self._audit.log_access_control_change(
            EVENT_REVOKE_FAILED,
            resource_id=str(input_data.document_id),
            action="revoke",
            actor=actor,
            target=str(input_data.revoked_from),
            outcome=(
                AuditOutcome.DENIED
                if code is AccessErrorCode.FORBIDDEN
                else AuditOutcome.FAILURE
            ),
            error=code.value,
        )
        return RevokeAccessResult(error=access_error(code, message))
