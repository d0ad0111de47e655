"""
===============================================================================
TARJETA CRC — identity/users.py
===============================================================================

Módulo:
    Actor (usuario autenticado que origina una operación)

Responsabilidades:
    - Definir el catálogo de roles conocidos (UserRole).
    - Definir Actor: user_id + roles + workspace + correlation_id.

Colaboradores:
    - identity/access_control.py, identity/rbac.py (deciden sobre un Actor)
    - audit.AuditLogger (actor "user:<uuid>" + correlation_id)

Notas:
    - La autenticación vive fuera de este paquete: quien llama ya construyó
      el Actor a partir de su sesión.
    - Los roles se normalizan a minúsculas; roles desconocidos se conservan
      (pueden ser sujetos de políticas por rol).
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
from uuid import UUID

from ..domain.ids import UserId


class UserRole(str, Enum):
    """Roles con semántica en la tabla RBAC."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"
    USER = "user"


def normalize_roles(roles: Iterable[str | UserRole]) -> frozenset[str]:
    normalized: set[str] = set()
    for role in roles:
        value = role.value if isinstance(role, UserRole) else str(role)
        value = value.strip().lower()
        if value:
            normalized.add(value)
    return frozenset(normalized)


@dataclass(frozen=True, slots=True)
class Actor:
    """Contexto de usuario/sesión que invoca un caso de uso."""

    user_id: UserId
    roles: frozenset[str] = field(default_factory=frozenset)
    workspace_id: UUID | None = None
    correlation_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", normalize_roles(self.roles))

    def has_role(self, role: str | UserRole) -> bool:
        value = role.value if isinstance(role, UserRole) else role.strip().lower()
        return value in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role(UserRole.ADMIN)

    @property
    def audit_name(self) -> str:
        return f"user:{self.user_id}"
