"""
===============================================================================
USE CASE: Check Access
===============================================================================

Responde si un usuario tiene una acción sobre un documento según las
políticas activas (incluye políticas globales y por rol si se pasan roles).

Notas:
  - Consulta, no mutación: no exige autorización del actor.
  - Se audita allowed/denied para trazar sondeos.
===============================================================================
"""

from __future__ import annotations

from ....audit import AuditLogger, AuditOutcome
from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.access_policy import normalize_action
from ....domain.errors import ValidationError
from ....domain.ids import parse_document_id, parse_user_id
from ....domain.repositories import AccessPolicyRepository
from ....identity.users import Actor, normalize_roles
from .access_results import (
    AccessErrorCode,
    CheckAccessInput,
    CheckAccessResult,
    access_error,
)

EVENT_CHECK_ALLOWED = "access_check_allowed"
EVENT_CHECK_DENIED = "access_check_denied"


class CheckAccessUseCase:
    """Evalúa has_permission para un (documento, usuario, acción)."""

    def __init__(
        self,
        policy_repository: AccessPolicyRepository,
        audit_logger: AuditLogger,
    ) -> None:
        self._policies = policy_repository
        self._audit = audit_logger

    def execute(
        self, input_data: CheckAccessInput, actor: Actor | None = None
    ) -> CheckAccessResult:
        try:
            document_id = parse_document_id(input_data.document_id)
            user_id = parse_user_id(input_data.user_id)
            action = normalize_action(input_data.action)
        except ValidationError as exc:
            return CheckAccessResult(
                error=access_error(AccessErrorCode.VALIDATION_ERROR, exc.message)
            )

        try:
            allowed = self._policies.has_permission(
                document_id,
                user_id,
                action,
                roles=tuple(sorted(normalize_roles(input_data.roles))),
            )
        except DatabaseError as exc:
            logger.error(
                "CheckAccessUseCase: database failure",
                extra={"error_id": exc.error_id},
            )
            return CheckAccessResult(
                error=access_error(
                    AccessErrorCode.DATABASE_ERROR, "Failed to check access."
                )
            )

        self._audit.log_access_control_change(
            EVENT_CHECK_ALLOWED if allowed else EVENT_CHECK_DENIED,
            resource_id=document_id,
            action=action,
            actor=actor,
            target=user_id,
            outcome=AuditOutcome.SUCCESS if allowed else AuditOutcome.DENIED,
        )
        return CheckAccessResult(allowed=allowed)
