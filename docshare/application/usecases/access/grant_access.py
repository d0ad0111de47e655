"""
===============================================================================
USE CASE: Grant Access
===============================================================================

Otorga a un usuario un conjunto de acciones sobre un documento.

Reglas:
  - El documento debe existir.
  - Solo el dueño puede otorgar (ownership override, acción "grant").
  - Si el usuario ya tiene una política sobre el documento, se reemplaza en
    el lugar (mismo id, updated_at nuevo): grant repetido no duplica filas.
  - Se audita siempre (granted / grant_failed).
===============================================================================
"""

from __future__ import annotations

from ....audit import AuditLogger, AuditOutcome
from ....crosscutting.exceptions import ConflictError, DatabaseError
from ....crosscutting.logger import logger
from ....crosscutting.metrics import observe_usecase_duration
from ....crosscutting.timing import Timer
from ....domain.access_policy import (
    DEFAULT_PRIORITY,
    AccessPolicy,
    ResourceType,
    SubjectType,
    sort_by_priority,
)
from ....domain.clock import Clock, utc_now
from ....domain.errors import ValidationError
from ....domain.ids import parse_document_id, parse_user_id
from ....domain.permissions import ResourceKind
from ....domain.repositories import AccessPolicyRepository, DocumentRepository
from ....identity.access_control import AccessControlService
from ....identity.users import Actor
from .access_results import (
    AccessErrorCode,
    AccessPolicyResult,
    GrantAccessInput,
    access_error,
)

EVENT_GRANTED = "access_policy_granted"
EVENT_GRANT_FAILED = "access_policy_grant_failed"


class GrantAccessUseCase:
    """Otorga acceso a un documento."""

    def __init__(
        self,
        document_repository: DocumentRepository,
        policy_repository: AccessPolicyRepository,
        access_control: AccessControlService,
        audit_logger: AuditLogger,
        *,
        clock: Clock = utc_now,
        default_priority: int = DEFAULT_PRIORITY,
    ) -> None:
        self._documents = document_repository
        self._policies = policy_repository
        self._access = access_control
        self._audit = audit_logger
        self._clock = clock
        self._default_priority = default_priority

    def execute(self, input_data: GrantAccessInput, actor: Actor) -> AccessPolicyResult:
        with Timer() as timer:
            try:
                result = self._grant(input_data, actor)
            except ConflictError as exc:
                result = self._fail(
                    input_data, actor, AccessErrorCode.CONFLICT, exc.message
                )
            except DatabaseError as exc:
                logger.error(
                    "GrantAccessUseCase: database failure",
                    extra={"error_id": exc.error_id},
                )
                result = self._fail(
                    input_data,
                    actor,
                    AccessErrorCode.DATABASE_ERROR,
                    "Failed to grant access.",
                )
        observe_usecase_duration("grant_access", timer.elapsed_seconds)
        return result

    def _grant(self, input_data: GrantAccessInput, actor: Actor) -> AccessPolicyResult:
        # 1) Identificadores
        try:
            document_id = parse_document_id(input_data.document_id)
            grantee_id = parse_user_id(input_data.granted_to, "granted_to")
        except ValidationError as exc:
            return self._fail(
                input_data, actor, AccessErrorCode.VALIDATION_ERROR, exc.message
            )

        # 2) Documento
        document = self._documents.get_document(document_id)
        if document is None:
            return self._fail(
                input_data, actor, AccessErrorCode.NOT_FOUND, "Document not found."
            )

        # 3) Autorización (solo dueño)
        denial = self._access.require_permission(
            actor,
            ResourceKind.DOCUMENT,
            "grant",
            resource_owner_id=document.owner_id,
        )
        if denial is not None:
            return self._fail(
                input_data, actor, AccessErrorCode.FORBIDDEN, "Access denied."
            )

        # 4) Construir o reemplazar la política
        now = self._clock()
        priority = (
            input_data.priority
            if input_data.priority is not None
            else self._default_priority
        )
        description = (
            input_data.description
            if input_data.description is not None
            else f"Granted by {actor.user_id} to {grantee_id}"
        )
        existing = sort_by_priority(
            self._policies.find_by_user_and_resource(grantee_id, document_id)
        )
        try:
            if existing:
                policy = existing[0].with_changes(
                    now=now,
                    actions=input_data.actions,
                    priority=priority,
                    description=description,
                    is_active=True,
                )
            else:
                policy = AccessPolicy.create(
                    name=f"Access to document {document_id}",
                    description=description,
                    subject_type=SubjectType.USER,
                    subject_id=grantee_id,
                    resource_type=ResourceType.DOCUMENT,
                    resource_id=document_id,
                    actions=input_data.actions,
                    priority=priority,
                    now=now,
                )
        except ValidationError as exc:
            return self._fail(
                input_data, actor, AccessErrorCode.VALIDATION_ERROR, exc.message
            )

        # 5) Persistir + auditar
        saved = self._policies.save(policy)
        self._audit.log_access_control_change(
            EVENT_GRANTED,
            resource_id=document_id,
            action="grant",
            actor=actor,
            target=grantee_id,
            outcome=AuditOutcome.SUCCESS,
            details={
                "policy_id": saved.id,
                "actions": saved.actions,
                "priority": saved.priority,
                "replaced": bool(existing),
            },
        )
        return AccessPolicyResult(policy=saved)

    def _fail(
        self,
        input_data: GrantAccessInput,
        actor: Actor,
        code: AccessErrorCode,
        message: str,
    ) -> AccessPolicyResult:
        self._audit.log_access_control_change(
            EVENT_GRANT_FAILED,
            resource_id=str(input_data.document_id),
            action="grant",
            actor=actor,
            target=str(input_data.granted_to),
            outcome=(
                AuditOutcome.DENIED
                if code is AccessErrorCode.FORBIDDEN
                else AuditOutcome.FAILURE
            ),
            details={"actions": list(input_data.actions)},
            error=code.value,
        )
        return AccessPolicyResult(error=access_error(code, message))
