"""
===============================================================================
TARJETA CRC — domain/audit.py
===============================================================================

Módulo:
    AuditEvent (registro append-only)

Responsabilidades:
    - Representar un evento de auditoría de control de acceso o seguridad.

Colaboradores:
    - domain.repositories.AuditEventRepository
    - audit.AuditLogger (construye los eventos)

Convenciones:
    - actor: "user:<uuid>" | "system" | "anonymous"
    - action: nombre del evento (p. ej. token_validated)
    - metadata: outcome, details y error, siempre JSON-safe y sin secretos
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(slots=True)
class AuditEvent:
    """Evento de auditoría."""

    id: UUID
    actor: str
    action: str
    target_id: UUID | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None

    @property
    def outcome(self) -> str | None:
        return self.metadata.get("outcome")
