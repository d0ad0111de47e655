"""
===============================================================================
TARJETA CRC — domain/entities.py
===============================================================================

Responsabilidades:
  - Definir la vista de solo lectura de un documento (Document) que necesita
    el control de acceso: dueño y workspace.

Colaboradores:
  - domain.repositories.DocumentRepository
  - application/usecases/* (resuelven owner_id antes de autorizar)

Notas:
  - Los bytes y el resto de la metadata viven en otro sistema.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from .ids import DocumentId, UserId


@dataclass(frozen=True, slots=True)
class Document:
    """Documento tal como lo ve el control de acceso."""

    id: DocumentId
    owner_id: UserId
    title: str = ""
    workspace_id: UUID | None = None
    created_at: datetime | None = None
