"""
===============================================================================
TARJETA CRC — identity/access_control.py
===============================================================================

Componente:
    AccessControlService (motor de decisión)

Responsabilidades:
    - require_permission: ownership override -> grant por política -> deny.
    - Devolver AccessDeniedError como valor (no excepción) ante un deny.
    - Loguear cada deny (WARNING) y contar decisiones en Prometheus.
    - Exponer la variante por roles (can / enforce_access).

Colaboradores:
    - domain.repositories.AccessPolicyRepository (has_permission)
    - domain.permissions (allow-lists del dueño)
    - identity.rbac (variante por roles)
    - crosscutting.logger / crosscutting.metrics

Notas:
    - Sin estado propio: seguro para compartir entre threads.
    - DatabaseError del repositorio se propaga: un fallo de infraestructura
      no es un "deny".
    - El log de deny NO es el audit trail (eso lo emite el caso de uso).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional
from uuid import UUID

from ..crosscutting.logger import logger
from ..crosscutting.metrics import record_access_decision
from ..domain.errors import ValidationError
from ..domain.ids import parse_document_id, parse_user_id
from ..domain.permissions import ResourceKind, owner_may
from ..domain.repositories import AccessPolicyRepository
from .rbac import DEFAULT_ROLES, Role, can
from .users import Actor


@dataclass(frozen=True, slots=True)
class AccessDeniedError:
    """Resultado de un deny: quién, sobre qué tipo de recurso y qué acción."""

    user_id: str
    resource_kind: str
    action: str
    reason: str = "no_matching_grant"

    @property
    def message(self) -> str:
        return (
            f"User {self.user_id} is not allowed to {self.action} "
            f"{self.resource_kind}."
        )


def _same_id(left: UUID | str | None, right: UUID | str | None) -> bool:
    if left is None or right is None:
        return False
    return str(left).strip().lower() == str(right).strip().lower()


class AccessControlService:
    """Decide si un actor puede realizar una acción sobre un recurso."""

    def __init__(
        self,
        policy_repository: AccessPolicyRepository,
        *,
        roles_registry: Mapping[str, Role] = DEFAULT_ROLES,
    ) -> None:
        self._policies = policy_repository
        self._roles = roles_registry

    def require_permission(
        self,
        actor: Actor,
        resource_kind: str,
        action: str,
        *,
        resource_owner_id: UUID | str | None = None,
        resource_id: UUID | str | None = None,
    ) -> Optional[AccessDeniedError]:
        """
        Autoriza una acción. None = permitido.

        Orden (gana el primero que aplica):
          1) Dueño + acción en la allow-list del tipo de recurso.
          2) Documento con resource_id: política activa que otorga la acción.
          3) Deny.
        """
        # 1) Ownership override (sin consultar políticas)
        if _same_id(resource_owner_id, actor.user_id) and owner_may(
            resource_kind, action
        ):
            record_access_decision(resource_kind, "owner", "allow")
            return None

        # 2) Grant por política (solo documentos)
        if resource_kind == ResourceKind.DOCUMENT and resource_id is not None:
            try:
                document_id = parse_document_id(resource_id)
                user_id = parse_user_id(actor.user_id)
            except ValidationError:
                return self._deny(
                    actor, resource_kind, action, resource_id, "malformed_identifier"
                )

            if self._policies.has_permission(
                document_id, user_id, action, roles=tuple(sorted(actor.roles))
            ):
                record_access_decision(resource_kind, "policy", "allow")
                return None

        # 3) Deny
        return self._deny(actor, resource_kind, action, resource_id)

    def can(
        self,
        actor: Actor,
        resource: str,
        action: str,
        *,
        resource_owner_id: UUID | str | None = None,
        workspace_id: UUID | str | None = None,
    ) -> bool:
        """Variante por roles (no consulta políticas)."""
        allowed = can(
            actor,
            resource,
            action,
            resource_owner_id=resource_owner_id,
            workspace_id=workspace_id,
            registry=self._roles,
        )
        record_access_decision(resource, "role", "allow" if allowed else "deny")
        return allowed

    def enforce_access(
        self,
        actor: Actor,
        resource: str,
        action: str,
        *,
        resource_owner_id: UUID | str | None = None,
        workspace_id: UUID | str | None = None,
    ) -> Optional[AccessDeniedError]:
        if self.can(
            actor,
            resource,
            action,
            resource_owner_id=resource_owner_id,
            workspace_id=workspace_id,
        ):
            return None
        denial = AccessDeniedError(
            user_id=str(actor.user_id),
            resource_kind=resource,
            action=action,
            reason="role_not_allowed",
        )
        logger.warning(
            "Acceso denegado por rol",
            extra={
                "user_id": denial.user_id,
                "resource_kind": resource,
                "action": action,
                "roles": sorted(actor.roles),
            },
        )
        return denial

    def _deny(
        self,
        actor: Actor,
        resource_kind: str,
        action: str,
        resource_id: UUID | str | None,
        reason: str = "no_matching_grant",
    ) -> AccessDeniedError:
        denial = AccessDeniedError(
            user_id=str(actor.user_id),
            resource_kind=resource_kind,
            action=action,
            reason=reason,
        )
        record_access_decision(resource_kind, "none", "deny")
        logger.warning(
            "Acceso denegado",
            extra={
                "user_id": denial.user_id,
                "resource_kind": resource_kind,
                "resource_id": str(resource_id) if resource_id is not None else None,
                "action": action,
                "reason": reason,
            },
        )
        return denial
