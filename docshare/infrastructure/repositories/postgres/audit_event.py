"""
============================================================
TARJETA CRC — infrastructure/repositories/postgres/audit_event.py
============================================================
Class: PostgresAuditEventRepository

Responsibilities:
  - Persistir eventos de auditoría (tabla audit_events, append-only).
  - Listar eventos por prefijo de acción / target, más recientes primero.

Collaborators:
  - domain.audit.AuditEvent
  - psycopg.types.json.Json (metadata JSONB)
  - PostgresRepository

Constraints / Notes:
  - Si falla, se propaga DatabaseError; AuditLogger decide tragarlo.
============================================================
"""

from __future__ import annotations

from uuid import UUID

from psycopg.types.json import Json

from ....domain.audit import AuditEvent
from .base import PostgresRepository


class PostgresAuditEventRepository(PostgresRepository):
    _SQL_INSERT = """
        INSERT INTO audit_events (id, actor, action, target_id, metadata, created_at)
        VALUES (%s, %s, %s, %s, %s, COALESCE(%s, now()))
    """

    def record_event(self, event: AuditEvent) -> None:
        self._execute(
            query=self._SQL_INSERT,
            params=[
                event.id,
                event.actor,
                event.action,
                event.target_id,
                Json(event.metadata or {}),
                event.created_at,
            ],
            context_msg="PostgresAuditEventRepository: Failed to record audit event",
            extra={"event_id": str(event.id), "audit_event": event.action},
        )

    def list_events(
        self,
        *,
        action_prefix: str | None = None,
        target_id: UUID | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[AuditEvent]:
        clauses: list[str] = []
        params: list[object] = []
        if action_prefix:
            clauses.append("action LIKE %s")
            params.append(action_prefix.replace("%", r"\%").replace("_", r"\_") + "%")
        if target_id is not None:
            clauses.append("target_id = %s")
            params.append(target_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = f"""
            SELECT id, actor, action, target_id, metadata, created_at
            FROM audit_events
            {where}
            ORDER BY created_at DESC, id DESC
            LIMIT %s OFFSET %s
        """
        params.extend([max(1, limit), max(0, offset)])

        rows = self._fetchall(
            query=query,
            params=params,
            context_msg="PostgresAuditEventRepository: Failed to list audit events",
            extra={"action_prefix": action_prefix or ""},
        )
        return [
            AuditEvent(
                id=row[0],
                actor=row[1],
                action=row[2],
                target_id=row[3],
                metadata=row[4] or {},
                created_at=row[5],
            )
            for row in rows
        ]
