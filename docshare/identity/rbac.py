"""
===============================================================================
TARJETA CRC — identity/rbac.py
===============================================================================

Módulo:
    RBAC por roles de usuario (variante `can`)

Responsabilidades:
    - Definir el vocabulario de acciones RBAC (Action) y sus sinónimos.
    - Definir roles con acciones propias + herencia (viewer < editor < admin).
    - Decidir can(actor, recurso, acción) sin consultar políticas.

Colaboradores:
    - identity.users.Actor / UserRole
    - identity.access_control.AccessControlService (expone can/enforce_access)
    - crosscutting.logger

Reglas (primera que aplica):
    1. Rol admin -> allow (cualquier acción).
    2. Dueño del recurso -> allow (cualquier acción).
    3. Acción desconocida -> deny (no se asume "read").
    4. Mismo workspace que el recurso y acción read -> allow.
    5. Tabla de roles (con herencia).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional
from uuid import UUID

from ..crosscutting.logger import logger
from .users import Actor, UserRole


class Action(str, Enum):
    """Acciones canónicas del modelo por roles."""

    READ = "read"
    WRITE = "write"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"


ACTION_SYNONYMS: Mapping[str, Action] = {
    "read": Action.READ,
    "view": Action.READ,
    "get": Action.READ,
    "write": Action.WRITE,
    "create": Action.WRITE,
    "publish": Action.WRITE,
    "update": Action.UPDATE,
    "edit": Action.UPDATE,
    "delete": Action.DELETE,
    "remove": Action.DELETE,
    "manage": Action.MANAGE,
}


def normalize_action(action: str) -> Optional[Action]:
    """Mapea sinónimos a la acción canónica. None si es desconocida."""
    if not isinstance(action, str):
        return None
    return ACTION_SYNONYMS.get(action.strip().lower())


@dataclass(frozen=True, slots=True)
class Role:
    """Rol: acciones propias + herencia opcional."""

    name: str
    actions: frozenset[Action] = field(default_factory=frozenset)
    inherits_from: Optional[str] = None
    description: str = ""

    def allows(self, action: Action, registry: Mapping[str, "Role"]) -> bool:
        """Acción directa o heredada (corta ciclos de herencia)."""
        seen: set[str] = set()
        role: Optional[Role] = self
        while role is not None and role.name not in seen:
            if action in role.actions:
                return True
            seen.add(role.name)
            role = registry.get(role.inherits_from) if role.inherits_from else None
        return False


DEFAULT_ROLES: dict[str, Role] = {
    UserRole.VIEWER.value: Role(
        name=UserRole.VIEWER.value,
        actions=frozenset({Action.READ}),
        description="Solo lectura",
    ),
    UserRole.EDITOR.value: Role(
        name=UserRole.EDITOR.value,
        actions=frozenset({Action.WRITE, Action.UPDATE}),
        inherits_from=UserRole.VIEWER.value,
        description="Lectura y edición",
    ),
    UserRole.ADMIN.value: Role(
        name=UserRole.ADMIN.value,
        actions=frozenset({Action.DELETE, Action.MANAGE}),
        inherits_from=UserRole.EDITOR.value,
        description="Acceso total",
    ),
}


def roles_allow(
    roles: Iterable[str],
    action: Action,
    registry: Mapping[str, Role] = DEFAULT_ROLES,
) -> bool:
    for name in roles:
        role = registry.get(name)
        if role is not None and role.allows(action, registry):
            return True
    return False


def can(
    actor: Actor,
    resource: str,
    action: str,
    *,
    resource_owner_id: UUID | str | None = None,
    workspace_id: UUID | str | None = None,
    registry: Mapping[str, Role] = DEFAULT_ROLES,
) -> bool:
    """Decisión por roles (ver reglas en el encabezado)."""
    if actor.is_admin:
        return True

    if resource_owner_id is not None and str(resource_owner_id) == str(actor.user_id):
        return True

    normalized = normalize_action(action)
    if normalized is None:
        logger.warning(
            "Acción RBAC desconocida: acceso denegado",
            extra={"resource_kind": resource, "action": action},
        )
        return False

    if (
        normalized is Action.READ
        and workspace_id is not None
        and actor.workspace_id is not None
        and str(workspace_id) == str(actor.workspace_id)
    ):
        return True

    return roles_allow(actor.roles, normalized, registry)
