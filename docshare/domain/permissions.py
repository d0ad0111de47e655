"""
===============================================================================
TARJETA CRC — domain/permissions.py
===============================================================================

Responsabilidades:
  - Nombrar los tipos de recurso que conoce el motor de decisión.
  - Definir qué acciones habilita ser dueño de un recurso (owner override).

Colaboradores:
  - identity/access_control.AccessControlService (paso 1: ownership)
  - identity/rbac.can (variante por roles)

Notas:
  - Las listas son cerradas: acciones fuera de ellas NO entran por ownership
    y caen al paso de políticas.
===============================================================================
"""

from __future__ import annotations

from typing import Mapping


class ResourceKind:
    """Tipos de recurso (strings estables, aparecen en logs y métricas)."""

    DOCUMENT = "document"
    ACCESS_POLICY = "accessPolicy"
    DOWNLOAD_TOKEN = "downloadToken"


OWNER_ALLOWED_ACTIONS: Mapping[str, frozenset[str]] = {
    ResourceKind.DOCUMENT: frozenset(
        {
            "create",
            "read",
            "write",
            "update",
            "delete",
            "manage",
            "publish",
            "upload",
            "grant",
            "revoke",
        }
    ),
    ResourceKind.ACCESS_POLICY: frozenset({"grant", "revoke"}),
}


def owner_may(resource_kind: str, action: str) -> bool:
    """True si el dueño del recurso puede realizar la acción sin consultar políticas."""
    allowed = OWNER_ALLOWED_ACTIONS.get(resource_kind)
    return bool(allowed) and action in allowed
