"""
============================================================
TARJETA CRC — infrastructure/repositories/in_memory/audit_event.py
============================================================
Class: InMemoryAuditEventRepository

Responsibilities:
- Guardar eventos de auditoría en memoria (append-only).
- Listar con filtros simples (prefijo de acción, target), más recientes primero.
============================================================
"""

from __future__ import annotations

import threading
from uuid import UUID

from ....domain.audit import AuditEvent


class InMemoryAuditEventRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    def record_event(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    def list_events(
        self,
        *,
        action_prefix: str | None = None,
        target_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditEvent]:
        with self._lock:
            events = list(reversed(self._events))
        if action_prefix:
            events = [e for e in events if e.action.startswith(action_prefix)]
        if target_id is not None:
            events = [e for e in events if e.target_id == target_id]
        return events[offset : offset + limit]
