"""
===============================================================================
USE CASE: List Document Policies
===============================================================================

Lista las políticas de un documento ordenadas por prioridad (la primera es
la "primaria").

Reglas:
  - El documento debe existir.
  - Dueño o un grantee con "manage" sobre el documento.
===============================================================================
"""

from __future__ import annotations

from ....crosscutting.exceptions import DatabaseError
from ....crosscutting.logger import logger
from ....domain.access_policy import sort_by_priority
from ....domain.errors import ValidationError
from ....domain.ids import parse_document_id
from ....domain.permissions import ResourceKind
from ....domain.repositories import AccessPolicyRepository, DocumentRepository
from ....identity.access_control import AccessControlService
from ....identity.users import Actor
from .access_results import AccessErrorCode, AccessPolicyListResult, access_error


class ListDocumentPoliciesUseCase:
    """Lista las políticas asociadas a un documento."""

    def __init__(
        self,
        document_repository: DocumentRepository,
        policy_repository: AccessPolicyRepository,
        access_control: AccessControlService,
    ) -> None:
        self._documents = document_repository
        self._policies = policy_repository
        self._access = access_control

    def execute(self, document_id: object, actor: Actor) -> AccessPolicyListResult:
        try:
            parsed_id = parse_document_id(document_id)
        except ValidationError as exc:
            return AccessPolicyListResult(
                error=access_error(AccessErrorCode.VALIDATION_ERROR, exc.message)
            )

        try:
            document = self._documents.get_document(parsed_id)
            if document is None:
                return AccessPolicyListResult(
                    error=access_error(AccessErrorCode.NOT_FOUND, "Document not found.")
                )

            denial = self._access.require_permission(
                actor,
                ResourceKind.DOCUMENT,
                "manage",
                resource_owner_id=document.owner_id,
                resource_id=parsed_id,
            )
            if denial is not None:
                return AccessPolicyListResult(
                    error=access_error(AccessErrorCode.FORBIDDEN, "Access denied.")
                )

            policies = self._policies.find_by_resource_id(parsed_id)
        except DatabaseError as exc:
            logger.error(
                "ListDocumentPoliciesUseCase: database failure",
                extra={"error_id": exc.error_id},
            )
            return AccessPolicyListResult(
                error=access_error(
                    AccessErrorCode.DATABASE_ERROR, "Failed to list policies."
                )
            )

        return AccessPolicyListResult(policies=sort_by_priority(policies))
